"""
Printable student documents: leaving and bonafide certificates, marksheets
and identity cards. Builders turn a Student and the school profile into
plain data; the image functions lay that data out on A4 pages with Pillow.
"""
from __future__ import annotations

import textwrap
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from PIL import Image, ImageDraw, ImageOps
from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.core.reports.renderers import image_to_pdf_bytes
from apps.core.utils.parsing import quantize, to_decimal

PAGE_WIDTH = 1240
PAGE_HEIGHT = 1754
MAX_SUBJECTS = 20

RESULT_PASS = 'PASS'
RESULT_FAIL = 'FAIL'


@dataclass(frozen=True)
class Letterhead:
    school_name: str
    school_address: str
    school_codes: str
    principal_name: str
    logo: object = None


@dataclass(frozen=True)
class CertificateData:
    title: str
    letterhead: Letterhead
    issued_on: date
    fields: tuple
    statement: str = ''
    duplicate: bool = False


@dataclass(frozen=True)
class SubjectMarks:
    subject: str
    theory_max: Decimal
    theory_obtained: Decimal
    practical_max: Decimal = Decimal('0')
    practical_obtained: Decimal = Decimal('0')

    @property
    def max_total(self):
        return self.theory_max + self.practical_max

    @property
    def obtained_total(self):
        return self.theory_obtained + self.practical_obtained

    def passed(self, pass_percentage) -> bool:
        return self.obtained_total * 100 >= pass_percentage * self.max_total


@dataclass(frozen=True)
class MarksheetData:
    exam_name: str
    letterhead: Letterhead
    issued_on: date
    student_name: str
    admission_number: str
    roll_number: str
    class_label: str
    father_name: str
    date_of_birth: date
    subjects: tuple
    max_total: Decimal
    obtained_total: Decimal
    percentage: Decimal
    pass_percentage: Decimal
    failed_subjects: tuple

    @property
    def result(self):
        return RESULT_FAIL if self.failed_subjects else RESULT_PASS


def pass_percentage() -> Decimal:
    return to_decimal(getattr(settings, 'MARKSHEET_PASS_PERCENTAGE', '33'), 'MARKSHEET_PASS_PERCENTAGE')


def display_date(value) -> str:
    return value.strftime('%d-%m-%Y') if value else 'N/A'


def marks_text(value) -> str:
    return format(quantize(value).normalize(), 'f')


def student_class_label(student) -> str:
    if student.section:
        return student.class_label
    return student.class_name or 'N/A'


def letterhead_for(profile) -> Letterhead:
    codes = []
    if profile.affiliation_number:
        codes.append(f"Affiliation No: {profile.affiliation_number}")
    if profile.school_code:
        codes.append(f"School Code: {profile.school_code}")
    if profile.udise_code:
        codes.append(f"UDISE: {profile.udise_code}")
    return Letterhead(
        school_name=profile.name or 'School',
        school_address=(profile.address or '').replace('\n', ', '),
        school_codes=' | '.join(codes),
        principal_name=profile.principal_name,
        logo=profile.logo or None,
    )


def _relation(student):
    if student.gender == 'Male':
        return 'son', 'His'
    if student.gender == 'Female':
        return 'daughter', 'Her'
    return 'ward', 'Their'


def leaving_certificate_data(student, profile, *, duplicate=False) -> CertificateData:
    """
    Particulars printed on a school leaving certificate.

    Dues are not checked here; issue_leaving_certificate refuses students
    with pending fees before a certificate is built.
    """
    return CertificateData(
        title='School Leaving Certificate',
        letterhead=letterhead_for(profile),
        issued_on=timezone.localdate(),
        duplicate=duplicate,
        fields=(
            ('General Register No.', student.admission_number),
            ('Name of the Student', student.name),
            ("Father's Name", student.father_name or 'N/A'),
            ("Mother's Name", student.mother_name or 'N/A'),
            ('Date of Birth', display_date(student.date_of_birth)),
            ('Gender', student.gender or 'N/A'),
            ('Date of Admission', display_date(student.admission_date)),
            ('Class Last Studied', student_class_label(student)),
            ('Date of Leaving', display_date(student.leaving_date or timezone.localdate())),
            ('Reason for Leaving', student.leaving_reason or "Parent's request"),
            ('Conduct', 'Good'),
            ('Fee Dues', 'None'),
        ),
        statement='Certified that the above particulars are in accordance with the General Register of the school.',
    )


def bonafide_certificate_data(student, profile, *, purpose='') -> CertificateData:
    if not student.is_active:
        raise ValidationError(f"{student.name} is not a current student. Bonafide certificates need an active record.")

    relation, pronoun = _relation(student)
    parent = f", {relation} of {student.father_name}," if student.father_name else ''
    year = profile.academic_year or str(timezone.localdate().year)
    statement = (
        f"This is to certify that {student.name}{parent} is a bonafide student of "
        f"{profile.name or 'this school'}, studying in Class {student_class_label(student)} "
        f"during the academic year {year}. "
    )
    if student.date_of_birth:
        statement += f"{pronoun} date of birth as per the school records is {display_date(student.date_of_birth)}. "
    purpose = (purpose or '').strip()
    statement += f"This certificate is issued on request for {purpose}." if purpose else 'This certificate is issued on request.'

    return CertificateData(
        title='Bonafide Certificate',
        letterhead=letterhead_for(profile),
        issued_on=timezone.localdate(),
        fields=(
            ('General Register No.', student.admission_number),
            ('Name of the Student', student.name),
            ('Class', student_class_label(student)),
            ('Roll No.', student.roll_number or 'N/A'),
        ),
        statement=statement,
    )


def subject_marks(subject, *, theory_max, theory_obtained, practical_max='0', practical_obtained='0') -> SubjectMarks:
    """Parse one marksheet row. Blank obtained marks count as zero."""
    subject = (subject or '').strip()
    if not subject:
        raise ValidationError({'subject': 'Subject name is required.'})

    values = {}
    for field, value in (
        ('theory_max', theory_max),
        ('theory_obtained', theory_obtained),
        ('practical_max', practical_max),
        ('practical_obtained', practical_obtained),
    ):
        number = quantize(to_decimal(value, field))
        if number < 0:
            raise ValidationError({field: f"{subject}: marks cannot be negative."})
        values[field] = number

    if values['theory_max'] + values['practical_max'] <= 0:
        raise ValidationError(f"{subject}: maximum marks must be greater than zero.")
    for part in ('theory', 'practical'):
        maximum = values[f'{part}_max']
        if values[f'{part}_obtained'] > maximum:
            raise ValidationError({
                f'{part}_obtained': f"{subject}: {part} marks cannot exceed {marks_text(maximum)}.",
            })
    return SubjectMarks(subject=subject, **values)


def build_marksheet(student, profile, *, exam_name, subjects) -> MarksheetData:
    exam_name = (exam_name or '').strip()
    if not exam_name:
        raise ValidationError({'exam_name': 'Exam name is required.'})
    subjects = tuple(subjects)
    if not subjects:
        raise ValidationError('Enter marks for at least one subject.')
    if len(subjects) > MAX_SUBJECTS:
        raise ValidationError(f"A marksheet can list at most {MAX_SUBJECTS} subjects.")

    seen = set()
    for row in subjects:
        key = row.subject.casefold()
        if key in seen:
            raise ValidationError(f"Subject {row.subject} is listed more than once.")
        seen.add(key)

    required = pass_percentage()
    max_total = sum((row.max_total for row in subjects), Decimal('0'))
    obtained_total = sum((row.obtained_total for row in subjects), Decimal('0'))
    return MarksheetData(
        exam_name=exam_name,
        letterhead=letterhead_for(profile),
        issued_on=timezone.localdate(),
        student_name=student.name,
        admission_number=student.admission_number,
        roll_number=student.roll_number or 'N/A',
        class_label=student_class_label(student),
        father_name=student.father_name or 'N/A',
        date_of_birth=student.date_of_birth,
        subjects=subjects,
        max_total=max_total,
        obtained_total=obtained_total,
        percentage=quantize(obtained_total * 100 / max_total),
        pass_percentage=required,
        failed_subjects=tuple(row.subject for row in subjects if not row.passed(required)),
    )


def _centered(draw, y, text, fill='black'):
    x = (PAGE_WIDTH - int(draw.textlength(text))) // 2
    draw.text((x, y), text, fill=fill)


def _paste_logo(page, logo, box=(140, 140), position=(60, 60)):
    if not logo:
        return
    try:
        with logo.open('rb') as logo_file:
            image = Image.open(logo_file).convert('RGBA')
            image = ImageOps.contain(image, box)
            page.paste(image, position, mask=image)
    except (OSError, ValueError):
        # Missing or unreadable file: print without the logo.
        return


def _draw_letterhead(page, draw, letterhead: Letterhead) -> int:
    draw.rectangle((30, 30, PAGE_WIDTH - 30, PAGE_HEIGHT - 30), outline='black', width=3)
    _paste_logo(page, letterhead.logo)
    _centered(draw, 80, letterhead.school_name)
    if letterhead.school_address:
        _centered(draw, 120, letterhead.school_address)
    if letterhead.school_codes:
        _centered(draw, 155, letterhead.school_codes)
    draw.line((60, 220, PAGE_WIDTH - 60, 220), fill='black', width=2)
    return 250


def _draw_signatures(draw, letterhead: Letterhead, left='Class Teacher'):
    y = PAGE_HEIGHT - 220
    draw.text((100, y), left, fill='black')
    draw.text((PAGE_WIDTH - 360, y), 'Principal', fill='black')
    if letterhead.principal_name:
        draw.text((PAGE_WIDTH - 360, y + 35), letterhead.principal_name, fill='black')


def build_certificate_image(data: CertificateData):
    page = Image.new('RGB', (PAGE_WIDTH, PAGE_HEIGHT), color='white')
    draw = ImageDraw.Draw(page)
    y = _draw_letterhead(page, draw, data.letterhead)

    _centered(draw, y + 20, data.title.upper())
    if data.duplicate:
        draw.rectangle((PAGE_WIDTH - 300, y + 5, PAGE_WIDTH - 80, y + 60), outline=(200, 0, 0), width=3)
        draw.text((PAGE_WIDTH - 260, y + 25), 'DUPLICATE', fill=(200, 0, 0))
    y += 100
    draw.text((100, y), f"Date: {display_date(data.issued_on)}", fill='black')
    y += 70

    for label, value in data.fields:
        draw.text((100, y), label, fill='black')
        draw.text((520, y), f": {value}", fill='black')
        y += 48

    if data.statement:
        y += 30
        for line in textwrap.wrap(data.statement, width=110):
            draw.text((100, y), line, fill='black')
            y += 34

    _draw_signatures(draw, data.letterhead)
    return page


def build_certificate_pdf(data: CertificateData) -> bytes:
    return image_to_pdf_bytes([build_certificate_image(data)])


MARKSHEET_COLUMNS = (
    ('Subject', 320),
    ('Theory', 160),
    ('Practical', 160),
    ('Obtained', 160),
    ('Maximum', 160),
    ('Status', 160),
)


def _marksheet_row(row: SubjectMarks, required):
    practical = '-'
    if row.practical_max > 0:
        practical = f"{marks_text(row.practical_obtained)} / {marks_text(row.practical_max)}"
    return (
        row.subject,
        f"{marks_text(row.theory_obtained)} / {marks_text(row.theory_max)}",
        practical,
        marks_text(row.obtained_total),
        marks_text(row.max_total),
        'Pass' if row.passed(required) else 'Fail',
    )


def _draw_table_row(draw, y, cells, height=44):
    x = 60
    for (_, width), value in zip(MARKSHEET_COLUMNS, cells):
        draw.rectangle((x, y, x + width, y + height), outline='black')
        draw.text((x + 8, y + height // 3), str(value), fill='black')
        x += width


def build_marksheet_image(data: MarksheetData):
    page = Image.new('RGB', (PAGE_WIDTH, PAGE_HEIGHT), color='white')
    draw = ImageDraw.Draw(page)
    y = _draw_letterhead(page, draw, data.letterhead)

    _centered(draw, y + 20, 'STATEMENT OF MARKS')
    _centered(draw, y + 55, data.exam_name)
    y += 120

    details = (
        ('Student Name', data.student_name, 'GR No.', data.admission_number),
        ("Father's Name", data.father_name, 'Class', data.class_label),
        ('Date of Birth', display_date(data.date_of_birth), 'Roll No.', data.roll_number),
    )
    for left_label, left_value, right_label, right_value in details:
        draw.text((60, y), f"{left_label}: {left_value}", fill='black')
        draw.text((720, y), f"{right_label}: {right_value}", fill='black')
        y += 40
    y += 20

    _draw_table_row(draw, y, [label for label, _ in MARKSHEET_COLUMNS], height=54)
    y += 54
    for row in data.subjects:
        _draw_table_row(draw, y, _marksheet_row(row, data.pass_percentage))
        y += 44
    _draw_table_row(draw, y, (
        'Grand Total', '', '', marks_text(data.obtained_total), marks_text(data.max_total), '',
    ))
    y += 80

    draw.text((60, y), f"Percentage: {data.percentage}%", fill='black')
    draw.text((720, y), f"Result: {data.result}", fill=(0, 120, 0) if data.result == RESULT_PASS else (200, 0, 0))
    y += 40
    if data.failed_subjects:
        draw.text((60, y), f"Failed in: {', '.join(data.failed_subjects)}", fill='black')
        y += 40
    draw.text((60, y), f"Minimum {marks_text(data.pass_percentage)}% required in each subject to pass.", fill='black')
    draw.text((60, y + 40), f"Date: {display_date(data.issued_on)}", fill='black')

    _draw_signatures(draw, data.letterhead)
    return page


def build_marksheet_pdf(data: MarksheetData) -> bytes:
    return image_to_pdf_bytes([build_marksheet_image(data)])


def build_id_card_image(student, letterhead: Letterhead):
    card = Image.new('RGB', (1000, 600), color='white')
    draw = ImageDraw.Draw(card)
    draw.rectangle([(0, 0), (1000, 90)], fill=(37, 99, 235))
    draw.text((24, 30), letterhead.school_name, fill='white')
    draw.text((24, 112), f"Name: {student.name}", fill='black')
    draw.text((24, 160), f"GR No: {student.admission_number}", fill='black')
    draw.text((24, 208), f"Class: {student_class_label(student)}", fill='black')
    draw.text((24, 256), f"Roll No: {student.roll_number or 'N/A'}", fill='black')
    draw.text((24, 304), f"Date of Birth: {display_date(student.date_of_birth)}", fill='black')
    draw.text((24, 352), f"Mobile: {student.mobile or 'N/A'}", fill='black')
    address = textwrap.wrap((student.address or '').replace('\n', ', '), width=60)
    for offset, line in enumerate(address[:2]):
        draw.text((24, 400 + offset * 36), line if offset else f"Address: {line}", fill='black')

    draw.rectangle([(740, 130), (960, 390)], outline='black')
    draw.text((810, 250), 'PHOTO', fill='black')
    _paste_logo(card, letterhead.logo, box=(120, 70), position=(860, 10))
    draw.text((740, 540), 'Principal', fill='black')
    return card


def build_id_cards_pdf(students, letterhead: Letterhead) -> bytes:
    return image_to_pdf_bytes([build_id_card_image(student, letterhead) for student in students])
