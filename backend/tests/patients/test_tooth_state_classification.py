import pytest

from app.services.tooth_state_classification import TOOTH_CONDITIONS, classify_tooth_condition


@pytest.mark.parametrize(
    ("treatment_type", "description", "expected"),
    [
        ("Pencabutan Gigi", None, "extracted"),
        ("Cabut Gigi", "", "extracted"),
        (None, "cabut gigi 36", "extracted"),
        ("Perawatan Saluran Akar", None, "root_canal"),
        ("Endodontik", "kunjungan kedua", "root_canal"),
        ("Pemasangan Mahkota", None, "crown"),
        (None, "Porcelain CROWN 11", "crown"),
        ("Tambal Gigi", None, "filled"),
        ("Penambalan", None, "filled"),
        (None, "tambalan komposit", "filled"),
        ("Pemeriksaan", "karies gigi 46", "decayed"),
        (None, "gigi berlubang", "decayed"),
    ],
)
def test_classify_tooth_condition_keyword_buckets(treatment_type, description, expected):
    assert classify_tooth_condition(treatment_type, description) == expected


def test_classify_tooth_condition_filled_precedes_decayed():
    assert classify_tooth_condition("Perawatan", "tambal karies gigi 16") == "filled"


def test_classify_tooth_condition_extracted_precedes_everything():
    assert classify_tooth_condition("Tambal Gigi", "mahkota rusak, dicabut") == "extracted"


def test_classify_tooth_condition_root_canal_precedes_crown():
    assert classify_tooth_condition("Saluran akar", "persiapan crown") == "root_canal"


@pytest.mark.parametrize(
    ("treatment_type", "description"),
    [(None, None), ("", ""), ("   ", None)],
)
def test_classify_tooth_condition_empty_to_healthy(treatment_type, description):
    assert classify_tooth_condition(treatment_type, description) == "healthy"


@pytest.mark.parametrize(
    "treatment_type",
    ["Scaling", "Pemasangan Behel", "Pembersihan Karang Gigi", "Kontrol rutin"],
)
def test_classify_tooth_condition_unknown_to_healthy(treatment_type):
    assert classify_tooth_condition(treatment_type, "Sukses") == "healthy"


def test_tooth_conditions_enumeration_is_closed():
    assert set(TOOTH_CONDITIONS) == {
        "healthy",
        "filled",
        "decayed",
        "extracted",
        "crown",
        "root_canal",
    }
