import pandas as pd
import pytest

from checklist import create_app
from checklist.extensions import db
from checklist.models import Question

HEADER = ["Area", "Activity", "Criteria"]


@pytest.fixture
def app(tmp_path):
    app = create_app("testing")
    app.config["UPLOAD_DIR"] = str(tmp_path / "uploads")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers(app):
    return {"Authorization": f"Bearer {app.config['ADMIN_TOKEN']}"}


@pytest.fixture
def make_workbook(tmp_path):
    """Write {sheet name: rows} to an .xlsx file and return its path."""
    def _make(sheets, name="checklist.xlsx"):
        path = tmp_path / name
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for sheet_name, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        return path
    return _make


@pytest.fixture
def checklist_sheets():
    """Two languages, one area group each, area printed on the first row only."""
    return {
        "Eng": [
            HEADER,
            ["Modeling", "Create part", "Part saved without errors"],
            [None, "Edit sketch", "Sketch updates the part"],
            [None, "Assembly", "Components mate correctly"],
        ],
        "Bahasa": [
            HEADER,
            ["Pemodelan", "Buat part", "Part tersimpan tanpa error"],
            [None, "Edit sketsa", "Sketsa memperbarui part"],
            [None, "Perakitan", "Komponen terpasang dengan benar"],
        ],
    }


@pytest.fixture
def seeded(app, make_workbook, checklist_sheets):
    from checklist.ingest.pipeline import import_workbook
    import_workbook(make_workbook(checklist_sheets))
    return {lang: Question.query.filter_by(language=lang).order_by(Question.sequence_order).all()
            for lang in ("EN", "ID")}
