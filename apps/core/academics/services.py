from django.db import transaction

from .models import SchoolClass, normalize_sections


@transaction.atomic
def save_school_class(*, name, sections, instance=None) -> SchoolClass:
    school_class = instance or SchoolClass()
    school_class.name = (name or '').strip()
    school_class.sections = normalize_sections(sections)
    school_class.full_clean()
    school_class.save()
    return school_class
