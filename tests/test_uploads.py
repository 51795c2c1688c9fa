# tests/test_uploads.py
import pytest

from docvault.services.uploads import FileCandidate, UploadValidator, sanitize_filename, sanitize_text

MB = 1024 * 1024


@pytest.fixture
def validator():
    return UploadValidator(10 * MB, ["pdf", "docx", "jpg"])


def test_accepts_valid_file(validator):
    assert validator.validate(FileCandidate("cv.pdf", 2 * MB, "application/pdf")).valid


def test_rejects_oversized_file(validator):
    result = validator.validate(FileCandidate("big.pdf", 11 * MB))
    assert not result.valid
    assert result.error == "File size must be less than 10MB"


def test_size_limit_message_rounds_half_up():
    for limit, shown in [(int(2.5 * MB), "3MB"), (int(0.5 * MB), "1MB"), (int(1.4 * MB), "1MB")]:
        result = UploadValidator(limit, ["pdf"]).validate(FileCandidate("big.pdf", limit + 1))
        assert result.error == f"File size must be less than {shown}", limit


def test_rejects_empty_file(validator):
    result = validator.validate(FileCandidate("empty.pdf", 0))
    assert result.error == "File is empty"


def test_rejects_extension_outside_whitelist(validator):
    result = validator.validate(FileCandidate("setup.exe", 100))
    assert not result.valid
    assert result.error == "File type not supported. Allowed types: pdf, docx, jpg"


def test_rejects_file_without_extension(validator):
    assert not validator.validate(FileCandidate("README", 100)).valid


def test_extension_match_is_case_insensitive(validator):
    assert validator.validate(FileCandidate("SCAN.JPG", 100)).valid


def test_rejects_long_filename(validator):
    name = "a" * 252 + ".pdf"
    assert validator.validate(FileCandidate(name, 100)).error == "Filename is too long"


def test_first_failing_check_wins(validator):
    # oversized and wrong type: size is reported
    assert "10MB" in validator.validate(FileCandidate("x.exe", 11 * MB)).error
    # empty and wrong type: emptiness is reported
    assert validator.validate(FileCandidate("x.exe", 0)).error == "File is empty"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("report.pdf", "report.pdf"),
        ('a<b>c:d"e/f\\g|h?i*j.pdf', "a_b_c_d_e_f_g_h_i_j.pdf"),
        ("CON", "_CON"),
        ("lpt1", "_lpt1"),
        ("...hidden.pdf", "hidden.pdf"),
        ("tab\there.pdf", "tab_here.pdf"),
    ],
)
def test_sanitize_filename(raw, expected):
    assert sanitize_filename(raw) == expected


def test_sanitize_filename_truncates():
    assert len(sanitize_filename("x" * 400 + ".pdf")) == 255


def test_sanitize_text():
    assert sanitize_text("  <Ann> 'O\"Neil'  ") == "Ann ONeil"
