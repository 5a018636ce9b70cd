from django.urls import path

from .views import class_list, class_update

urlpatterns = [
    path('', class_list, name='class_list'),
    path('<int:pk>/edit/', class_update, name='class_update'),
]
