from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404, redirect, render

from apps.core.users.audit import log_audit_event
from apps.core.users.decorators import role_required

from .forms import SchoolClassForm
from .models import SchoolClass
from .services import save_school_class


@login_required
@role_required('schooladmin')
def class_list(request):
    if request.method == 'POST':
        form = SchoolClassForm(request.POST)
        if form.is_valid():
            try:
                school_class = save_school_class(
                    name=form.cleaned_data['name'],
                    sections=form.cleaned_data['sections'],
                )
            except ValidationError as exc:
                form.add_error(None, exc)
            else:
                log_audit_event(
                    request=request,
                    action='academics.class_saved',
                    target=school_class,
                    details=f"Name={school_class.name}, Sections={','.join(school_class.sections)}",
                )
                messages.success(request, 'Class saved successfully.')
                return redirect('class_list')
    else:
        form = SchoolClassForm()

    return render(request, 'academics/class_list.html', {
        'classes': SchoolClass.objects.all(),
        'form': form,
    })


@login_required
@role_required('schooladmin')
def class_update(request, pk):
    school_class = get_object_or_404(SchoolClass, pk=pk)

    if request.method == 'POST':
        form = SchoolClassForm(request.POST, instance=school_class)
        if form.is_valid():
            try:
                save_school_class(
                    name=form.cleaned_data['name'],
                    sections=form.cleaned_data['sections'],
                    instance=school_class,
                )
            except ValidationError as exc:
                form.add_error(None, exc)
            else:
                messages.success(request, 'Class updated successfully.')
                return redirect('class_list')
    else:
        form = SchoolClassForm(instance=school_class)

    return render(request, 'academics/class_form.html', {
        'form': form,
        'school_class': school_class,
    })
