import pytest

from securelink.domain.file_storage import (
    ObjectStat,
    StoredFile,
    StoredFileRef,
    Visibility,
    generate_random_id,
)
from securelink.domain.file_storage.entities import URL_SAFE_ALPHABET
from tests.fixtures import create_stored_file


class TestVisibility:
    def test_from_string(self):
        assert Visibility.from_string("PUBLIC") is Visibility.PUBLIC
        assert Visibility.from_string(" private ") is Visibility.PRIVATE

    @pytest.mark.parametrize("value", ["", "secret", None])
    def test_from_string_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            Visibility.from_string(value)


class TestStoredFile:
    def test_random_id_alphabet_and_length(self):
        file_id = generate_random_id()
        assert len(file_id) == 21
        assert set(file_id) <= set(URL_SAFE_ALPHABET)

    def test_build_file_name_keeps_extension(self):
        name = StoredFile.build_file_name("Quarterly Report.PDF")
        assert name.endswith(".PDF")
        assert len(name) == 21 + len(".PDF")

    def test_build_file_name_without_extension(self):
        assert len(StoredFile.build_file_name("README")) == 21

    def test_build_file_name_prefers_explicit_name(self):
        assert StoredFile.build_file_name("a.pdf", "fixed.pdf") == "fixed.pdf"

    def test_build_object_key(self):
        assert StoredFile.build_object_key("a.pdf", "/2025/01/31/") == "2025/01/31/a.pdf"
        assert StoredFile.build_object_key("a.pdf") == "a.pdf"

    def test_ref_and_dict(self):
        stored = create_stored_file(Visibility.PUBLIC)

        assert stored.ref() == StoredFileRef("public", stored.object_key, Visibility.PUBLIC)
        data = stored.to_dict()
        assert data["visibility"] == "public"
        assert data["created_at"] == "2025-01-31T12:00:00+00:00"


class TestObjectStat:
    def test_original_name_from_metadata(self):
        assert ObjectStat(size=1, metadata={"original-name": "a.pdf"}).original_name == "a.pdf"
        assert ObjectStat(size=1).original_name is None
