import re
import zipfile
from io import BytesIO

from openpyxl import Workbook


def workbook_to_bytes(wb: Workbook) -> bytes:
    """openpyxlのWorkbookをxlsxバイト列に変換"""
    excel_bytes = BytesIO()
    wb.save(excel_bytes)
    excel_bytes.seek(0)
    return excel_bytes.getvalue()


def rewrite_sheet_dimension(
    data: bytes, ref: str, sheet_part: str = "xl/worksheets/sheet1.xml"
) -> bytes:
    """xlsxのシートXMLの<dimension ref>を書き換えたバイト列を返す"""
    source = zipfile.ZipFile(BytesIO(data))
    output = BytesIO()
    with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as target:
        for item in source.infolist():
            content = source.read(item.filename)
            if item.filename == sheet_part:
                content = re.sub(
                    rb'<dimension ref="[^"]*"\s*/>',
                    f'<dimension ref="{ref}"/>'.encode(),
                    content,
                )
            target.writestr(item, content)
    return output.getvalue()
