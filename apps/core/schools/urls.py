from django.urls import path

from .views import school_profile_update

urlpatterns = [
    path('profile/', school_profile_update, name='school_profile_update'),
]
