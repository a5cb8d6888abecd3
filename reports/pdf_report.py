"""Single-page PDF rendition of a grading report.

Only the standard Helvetica font is referenced, so the output needs no
embedded resources. Reports longer than one page are cut off at the bottom
margin; there is no pagination.
"""

PDF_VERSION = "1.4"
WRAP_WIDTH = 95

PAGE_WIDTH = 612
PAGE_HEIGHT = 792
TOP_OFFSET = 760
LEFT_OFFSET = 50
LINE_HEIGHT = 14
BLANK_LINE_HEIGHT = 10
MIN_OFFSET = 40
FONT_SIZE = 11

CATALOG_ID = 1
PAGES_ID = 2
PAGE_ID = 3
FONT_ID = 4
CONTENT_ID = 5


def escape_pdf_text(text):
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def wrap_report_text(text, width=WRAP_WIDTH):
    lines = []
    for segment in text.replace("\r\n", "\n").split("\n"):
        words = segment.split()
        if not words:
            lines.append("")
            continue
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if not current or len(candidate) <= width:
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)
    return lines


def report_title(student_name):
    return f"Grading Report - {student_name}"


def build_report_lines(student_name, report_text):
    return [report_title(student_name), ""] + wrap_report_text(report_text)


def layout_lines(lines):
    """Pair each line with its baseline, dropping whatever falls below the margin."""
    placed = []
    y = TOP_OFFSET
    for line in lines:
        if y < MIN_OFFSET:
            break
        placed.append((line, y))
        y -= LINE_HEIGHT if line else BLANK_LINE_HEIGHT
    return placed


def build_content_stream(lines):
    commands = ["BT", f"/F1 {FONT_SIZE} Tf"]
    for line, y in layout_lines(lines):
        commands.append(f"1 0 0 1 {LEFT_OFFSET} {y} Tm ({escape_pdf_text(line)}) Tj")
    commands.append("ET")
    return "\n".join(commands).encode("utf-8")


class PdfObjectWriter:
    """Appends numbered objects and remembers where each one starts."""

    def __init__(self, version=PDF_VERSION):
        self._buffer = bytearray(f"%PDF-{version}\n".encode("ascii"))
        self._offsets = []

    def add_object(self, body):
        if isinstance(body, str):
            body = body.encode("ascii")
        number = len(self._offsets) + 1
        self._offsets.append(len(self._buffer))
        self._buffer += f"{number} 0 obj\n".encode("ascii")
        self._buffer += body
        self._buffer += b"\nendobj\n"
        return number

    def add_stream(self, data):
        header = f"<< /Length {len(data)} >>\nstream\n".encode("ascii")
        return self.add_object(header + data + b"\nendstream")

    def finish(self, root_id):
        xref_offset = len(self._buffer)
        entries = [f"xref\n0 {len(self._offsets) + 1}\n", "0000000000 65535 f \n"]
        entries.extend(f"{offset:010d} 00000 n \n" for offset in self._offsets)
        entries.append(
            f"trailer\n<< /Size {len(self._offsets) + 1} /Root {root_id} 0 R >>\n"
            f"startxref\n{xref_offset}\n%%EOF\n"
        )
        self._buffer += "".join(entries).encode("ascii")
        return bytes(self._buffer)


def encode_report_pdf(student_name, report_text):
    content = build_content_stream(build_report_lines(student_name, report_text))

    writer = PdfObjectWriter()
    writer.add_object(f"<< /Type /Catalog /Pages {PAGES_ID} 0 R >>")
    writer.add_object(f"<< /Type /Pages /Kids [{PAGE_ID} 0 R] /Count 1 >>")
    writer.add_object(
        f"<< /Type /Page /Parent {PAGES_ID} 0 R /MediaBox [0 0 {PAGE_WIDTH} {PAGE_HEIGHT}] "
        f"/Resources << /Font << /F1 {FONT_ID} 0 R >> >> /Contents {CONTENT_ID} 0 R >>"
    )
    writer.add_object("<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>")
    writer.add_stream(content)
    return writer.finish(CATALOG_ID)
