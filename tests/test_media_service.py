from gateway.services.media_service import is_analyzable, normalize_content_type


def test_images_and_pdf_are_analyzable():
    assert is_analyzable("image/png") is True
    assert is_analyzable("image/jpeg; charset=binary") is True
    assert is_analyzable("application/pdf") is True


def test_other_types_are_not_analyzable():
    assert is_analyzable("text/plain") is False
    assert is_analyzable("audio/ogg") is False
    assert is_analyzable("video/mp4") is False
    assert is_analyzable(None) is False
    assert is_analyzable("") is False


def test_matching_is_case_insensitive():
    assert is_analyzable("Image/JPEG") is True
    assert is_analyzable("  APPLICATION/PDF ") is True


def test_normalize_content_type():
    assert normalize_content_type("Image/JPEG; charset=binary") == "image/jpeg"
    assert normalize_content_type(None) == ""
