from __future__ import annotations

import csv
from datetime import date
from decimal import Decimal
from io import BytesIO, StringIO

from PIL import Image, ImageDraw
from django.conf import settings
from django.template.loader import render_to_string
from django.utils import numberformat

from apps.core.utils.parsing import quantize

from .tables import LANDSCAPE

PAGE_SHORT_SIDE = 1240
PAGE_LONG_SIDE = 1754
MARGIN = 20
ROW_HEIGHT = 44
HEADER_HEIGHT = 60
TITLE_HEIGHT = 90
NOTE_HEIGHT = 30


def format_amount(value, currency=False) -> str:
    text = numberformat.format(
        quantize(value),
        getattr(settings, 'DECIMAL_SEPARATOR', '.'),
        decimal_pos=2,
        grouping=getattr(settings, 'NUMBER_GROUPING', (3, 2, 0)),
        thousand_sep=getattr(settings, 'THOUSAND_SEPARATOR', ','),
        force_grouping=True,
    )
    if currency:
        symbol = getattr(settings, 'REPORT_CURRENCY_SYMBOL', '₹')
        if text.startswith('-'):
            return f"-{symbol}{text[1:]}"
        return f"{symbol}{text}"
    return text


def format_cell(value, column=None) -> str:
    if value is None:
        return ''
    if isinstance(value, Decimal):
        if column is not None and column.accounting and value < 0:
            return f"({format_amount(-value)})"
        return format_amount(value)
    if isinstance(value, date):
        return value.strftime('%d-%m-%Y')
    return str(value)


def _footer_cells(table):
    if not table.footer:
        return []
    return [format_cell(value, column) for value, column in zip(table.footer, table.columns)]


def _note_lines(table, currency=True):
    return [f"{label}: {format_amount(value, currency=currency)}" for label, value in table.notes]


def rows_to_csv_bytes(headers, rows):
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return output.getvalue().encode('utf-8')


def render_csv(table) -> bytes:
    rows = [
        [format_cell(value, column) for value, column in zip(row, table.columns)]
        for row in table.rows
    ]
    if table.footer:
        rows.append(_footer_cells(table))
    for label, value in table.notes:
        rows.append([label, format_amount(value)])
    return rows_to_csv_bytes(table.headers, rows)


def image_to_pdf_bytes(images):
    if not images:
        return b''
    rgb_images = [img.convert('RGB') for img in images]
    output = BytesIO()
    rgb_images[0].save(output, format='PDF', save_all=True, append_images=rgb_images[1:])
    return output.getvalue()


def _page_size(orientation):
    if orientation == LANDSCAPE:
        return PAGE_LONG_SIDE, PAGE_SHORT_SIDE
    return PAGE_SHORT_SIDE, PAGE_LONG_SIDE


def _draw_row(draw, y, cells, col_width, height, max_chars):
    for idx, value in enumerate(cells):
        x1 = MARGIN + idx * col_width
        x2 = x1 + col_width
        draw.rectangle((x1, y, x2, y + height), outline='black')
        text = str(value)
        if len(text) > max_chars:
            text = text[:max_chars - 3] + '...'
        draw.text((x1 + 6, y + height // 3), text, fill='black')


def _blank_page(table, profile, width, height):
    page = Image.new('RGB', (width, height), 'white')
    draw = ImageDraw.Draw(page)
    heading = table.title
    if profile is not None and profile.name:
        heading = f"{profile.name} - {table.title}"
    draw.text((MARGIN, 15), heading, fill='black')
    if table.subtitle:
        draw.text((MARGIN, 45), table.subtitle, fill='black')
    return page, draw


def render_pdf_pages(table, profile=None) -> list:
    """Lay the table out on page images; notes that do not fit go on a fresh page."""
    width, height = _page_size(table.orientation)
    cols = len(table.columns)
    col_width = (width - 2 * MARGIN) // max(1, cols)
    max_chars = max(3, col_width // 7)

    body = [
        [format_cell(value, column) for value, column in zip(row, table.columns)]
        for row in table.rows
    ]
    trailer = ([_footer_cells(table)] if table.footer else [])
    notes = _note_lines(table, currency=False)

    rows_per_page = max(1, (height - TITLE_HEIGHT - HEADER_HEIGHT - 2 * MARGIN) // ROW_HEIGHT)
    pending_rows = body + trailer
    pages = []
    while True:
        chunk, pending_rows = pending_rows[:rows_per_page], pending_rows[rows_per_page:]
        page, draw = _blank_page(table, profile, width, height)
        pages.append(page)

        y = TITLE_HEIGHT
        _draw_row(draw, y, table.headers, col_width, HEADER_HEIGHT, max_chars)
        y += HEADER_HEIGHT
        for cells in chunk:
            _draw_row(draw, y, cells, col_width, ROW_HEIGHT, max_chars)
            y += ROW_HEIGHT
        if not pending_rows:
            break

    for line in notes:
        y += NOTE_HEIGHT
        if y + NOTE_HEIGHT > height - MARGIN:
            page, draw = _blank_page(table, profile, width, height)
            pages.append(page)
            y = TITLE_HEIGHT
        draw.text((MARGIN, y), line, fill='black')

    return pages


def render_pdf(table, profile=None) -> bytes:
    return image_to_pdf_bytes(render_pdf_pages(table, profile))


def render_html(table, profile=None) -> str:
    return render_to_string('reports/print.html', {
        'profile': profile,
        'table': table,
        'headers': table.headers,
        'rows': [
            [format_cell(value, column) for value, column in zip(row, table.columns)]
            for row in table.rows
        ],
        'footer': _footer_cells(table),
        'notes': _note_lines(table),
        'currency_symbol': getattr(settings, 'REPORT_CURRENCY_SYMBOL', '₹'),
    })
