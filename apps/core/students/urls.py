from django.urls import path

from .views import (
    class_id_cards,
    class_roster,
    student_bonafide_certificate,
    student_id_card,
    student_leaving_certificate,
    student_list,
    student_marksheet,
    student_promote,
)

urlpatterns = [
    path('', student_list, name='student_list'),
    path('promote/', student_promote, name='student_promote'),
    path('roster/', class_roster, name='class_roster'),
    path('roster/id-cards/', class_id_cards, name='class_id_cards'),
    path('<int:pk>/leaving-certificate/', student_leaving_certificate, name='student_leaving_certificate'),
    path('<int:pk>/bonafide/', student_bonafide_certificate, name='student_bonafide_certificate'),
    path('<int:pk>/marksheet/', student_marksheet, name='student_marksheet'),
    path('<int:pk>/id-card/', student_id_card, name='student_id_card'),
]
