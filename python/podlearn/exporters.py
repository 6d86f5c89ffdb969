from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from .models import Transcript
from .parsing import line_to_payload

TIME_COL_TWIPS = 900
GAP_COL_TWIPS = 329
PAGE_WIDTH_TWIPS = 11906
SIDE_MARGIN_TWIPS = 1134
TEXT_COL_TWIPS = PAGE_WIDTH_TWIPS - (SIDE_MARGIN_TWIPS * 2) - TIME_COL_TWIPS - GAP_COL_TWIPS


def format_timestamp(seconds: float) -> str:
    if not seconds or seconds < 0:
        return "0:00"
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


def _header_lines(meta: dict[str, Any], lines: Transcript) -> list[str]:
    title = str(meta.get("title") or "").strip() or "Ukendt episode"
    channel = str(meta.get("channel_title") or "").strip()
    duration = lines[-1].end if lines else 0.0

    header = [f'Episode: "{title}"']
    if channel:
        header.append(f"Kanal: {channel}")
    header.extend(
        [
            f"Nøgle: {meta.get('key') or '-'}",
            f"Dato: {datetime.now().strftime('%d.%m.%Y')}",
            f"Varighed: {format_timestamp(duration)}",
            f"Linjer: {len(lines)}",
        ]
    )
    if meta.get("degraded"):
        header.append("Bemærk: demo-transcript (generering fejlede)")
    header.append("")
    return header


def export_txt(meta: dict[str, Any], lines: Transcript, output_path: Path, *, with_translation: bool = True) -> None:
    out = _header_lines(meta, lines)

    for line in lines:
        out.append(f"[{format_timestamp(line.start)}]\t{line.text}")
        if with_translation and line.translation:
            out.append(f"\t{line.translation}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text("\n".join(out).strip() + "\n", encoding="utf-8")


def export_docx(meta: dict[str, Any], lines: Transcript, output_path: Path, *, with_translation: bool = True) -> None:
    try:
        from docx import Document
        from docx.enum.table import WD_TABLE_ALIGNMENT
        from docx.enum.text import WD_ALIGN_PARAGRAPH
        from docx.oxml import OxmlElement
        from docx.oxml.ns import qn
        from docx.shared import Mm, Pt, RGBColor, Twips
    except ImportError as exc:  # pragma: no cover - env dependent
        raise RuntimeError("python-docx mangler. Installer pakken med 'pip install -e .'") from exc

    def _format_paragraph(paragraph: Any) -> None:
        paragraph.paragraph_format.space_after = Pt(0)
        paragraph.paragraph_format.space_before = Pt(0)
        paragraph.paragraph_format.line_spacing = 1.0

    def _set_white_borders(cell: Any) -> None:
        tc_pr = cell._tc.get_or_add_tcPr()
        tc_borders = tc_pr.first_child_found_in("w:tcBorders")
        if tc_borders is None:
            tc_borders = OxmlElement("w:tcBorders")
            tc_pr.append(tc_borders)

        for edge in ("top", "left", "bottom", "right"):
            edge_tag = qn(f"w:{edge}")
            edge_element = tc_borders.find(edge_tag)
            if edge_element is None:
                edge_element = OxmlElement(f"w:{edge}")
                tc_borders.append(edge_element)
            edge_element.set(qn("w:val"), "single")
            edge_element.set(qn("w:sz"), "4")
            edge_element.set(qn("w:space"), "0")
            edge_element.set(qn("w:color"), "FFFFFF")

    doc = Document()
    section = doc.sections[0]
    section.page_width = Mm(210)
    section.page_height = Mm(297)
    section.left_margin = Mm(20)
    section.right_margin = Mm(20)

    style = doc.styles["Normal"]
    style.font.size = Pt(12)

    for header_line in _header_lines(meta, lines):
        _format_paragraph(doc.add_paragraph(header_line))

    if lines:
        table = doc.add_table(rows=0, cols=3)
        table.style = "Table Grid"
        table.autofit = False
        table.alignment = WD_TABLE_ALIGNMENT.LEFT
        widths = (TIME_COL_TWIPS, GAP_COL_TWIPS, TEXT_COL_TWIPS)
        for column, width in zip(table.columns, widths):
            column.width = Twips(width)

        for line in lines:
            row = table.add_row()
            for cell, width in zip(row.cells, widths):
                cell.width = Twips(width)
                _set_white_borders(cell)

            time_p = row.cells[0].paragraphs[0]
            _format_paragraph(time_p)
            time_p.alignment = WD_ALIGN_PARAGRAPH.RIGHT
            time_p.add_run(format_timestamp(line.start))

            _format_paragraph(row.cells[1].paragraphs[0])

            text_p = row.cells[2].paragraphs[0]
            _format_paragraph(text_p)
            text_p.add_run(line.text).bold = True
            if with_translation and line.translation:
                translation_p = row.cells[2].add_paragraph()
                _format_paragraph(translation_p)
                translation_run = translation_p.add_run(line.translation)
                translation_run.italic = True
                translation_run.font.color.rgb = RGBColor(0x64, 0x74, 0x8B)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    doc.save(output_path)


def atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)


def export_json(meta: dict[str, Any], lines: Transcript, output_path: Path) -> None:
    atomic_write_json(
        output_path,
        {
            "episodeId": meta.get("key"),
            "title": meta.get("title"),
            "segments": [line_to_payload(line) for line in lines],
        },
    )
