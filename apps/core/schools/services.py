from django.db import DatabaseError

from apps.core.utils.exceptions import UpstreamUnavailable

from .models import SchoolProfile


def get_school_profile() -> SchoolProfile:
    try:
        profile = SchoolProfile.objects.order_by('id').first()
        if profile is None:
            profile = SchoolProfile.objects.create()
    except DatabaseError as exc:
        raise UpstreamUnavailable('school profile', exc) from exc
    return profile
