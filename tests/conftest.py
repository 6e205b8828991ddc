import os
from unittest.mock import Mock, patch

import pytest
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from src.config import SpreadsheetPreviewConfig
from tests.helpers import workbook_to_bytes


@pytest.fixture
def mock_config():
    """Mock spreadsheet preview configuration for testing"""
    config = Mock(spec=SpreadsheetPreviewConfig)
    config.oci_base_url = "https://test.objectstorage.ca-toronto-1.oci.customer-oci.com"
    config.oci_namespace = "testns"
    config.oci_bucket = "testbucket"
    config.oci_container_url = (
        "https://test.objectstorage.ca-toronto-1.oci.customer-oci.com/n/testns/b/testbucket"
    )
    config.has_object_storage = True
    config.fetch_timeout = 60.0
    config.theme_fallback = "#000000"
    config.allowed_file_extensions = ["xlsx", "xls"]
    config.preview_tool_description = "Test preview tool"
    config.download_tool_description = "Test download tool"

    # Mock validation method
    config.validate.return_value = []

    return config


@pytest.fixture
def mock_env_vars():
    """Mock environment variables for testing"""
    env_vars = {
        "SPREADSHEET_OCI_BASE_URL": "https://test.objectstorage.ca-toronto-1.oci.customer-oci.com",
        "SPREADSHEET_OCI_NAMESPACE": "testns",
        "SPREADSHEET_OCI_BUCKET": "testbucket",
    }

    with patch.dict(os.environ, env_vars, clear=True):
        yield env_vars


@pytest.fixture
def simple_xlsx_bytes() -> bytes:
    """シンプルなxlsx（2行2列、書式なし）"""
    wb = Workbook()
    ws = wb.active
    ws.title = "Sheet1"
    ws["A1"] = "Name"
    ws["B1"] = "Age"
    ws["A2"] = "John"
    ws["B2"] = 25
    return workbook_to_bytes(wb)


@pytest.fixture
def formatted_xlsx_bytes() -> bytes:
    """書式を含むxlsx"""
    wb = Workbook()
    ws = wb.active
    ws.title = "FormattedSheet"

    # ヘッダー行に書式を設定
    ws["A1"] = "Name"
    ws["A1"].font = Font(name="Arial", size=12, bold=True, color="FFFF0000")
    ws["A1"].fill = PatternFill(
        start_color="FFFFFF00", end_color="FFFFFF00", fill_type="solid"
    )

    ws["B1"] = "Value"
    ws["B1"].font = Font(name="Arial", size=10.5, italic=True)
    ws["B1"].alignment = Alignment(horizontal="center", vertical="top")

    # データ行
    ws["A2"] = "Item1"
    ws["B2"] = 100
    ws["B2"].border = Border(left=Side(style="thin", color="FF0000FF"))

    ws["A3"] = "Item2"
    ws["B3"] = 2.5
    ws["B3"].border = Border(left=Side(style="thin"))

    return workbook_to_bytes(wb)


@pytest.fixture
def multi_sheet_xlsx_bytes() -> bytes:
    """複数シートを含むxlsx"""
    wb = Workbook()

    ws1 = wb.active
    ws1.title = "First"
    ws1["A1"] = "Data1"

    ws2 = wb.create_sheet("Second")
    ws2["A1"] = "Data2"
    ws2["C5"] = "Far"

    return workbook_to_bytes(wb)


@pytest.fixture
def empty_xlsx_bytes() -> bytes:
    """セルが1つも無いxlsx"""
    wb = Workbook()
    wb.active.title = "Empty"
    return workbook_to_bytes(wb)
