from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect, render

from apps.core.users.audit import log_audit_event
from apps.core.users.decorators import role_required

from .forms import SchoolProfileForm
from .services import get_school_profile


@login_required
@role_required('schooladmin')
def school_profile_update(request):
    profile = get_school_profile()

    if request.method == 'POST':
        form = SchoolProfileForm(request.POST, request.FILES, instance=profile)
        if form.is_valid():
            profile = form.save()
            log_audit_event(
                request=request,
                action='schools.profile_updated',
                target=profile,
                details=f"Name={profile.name}, Year={profile.academic_year}",
            )
            messages.success(request, 'School profile saved successfully.')
            return redirect('school_profile_update')
    else:
        form = SchoolProfileForm(instance=profile)

    return render(request, 'schools/profile_form.html', {
        'form': form,
        'profile': profile,
    })
