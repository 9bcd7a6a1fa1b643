"""
Tests for reading model documents.
"""

import logging

from codegen_templating.model.reader import DocumentModelReader, iter_elements

DOCUMENT = {
    "profiles": [
        {
            "id": "p1",
            "elementType": "profile",
            "name": "Persistence",
            "packagedElements": [{"id": "st1", "elementType": "stereotype", "name": "Entity"}],
        }
    ],
    "model": {
        "id": "m",
        "elementType": "model",
        "packagedElements": [
            {
                "id": "c1",
                "elementType": "class",
                "name": "Order",
                "ownedAttributes": [{"id": "a1", "name": "total"}],
                "ownedOperations": [
                    {"id": "o1", "name": "submit", "ownedParameters": [{"id": "x1", "name": "when"}]}
                ],
                "ownedStereotypes": [{"id": "s1", "name": "Entity"}],
            },
            {"id": "e1", "elementType": "enumeration", "ownedLiterals": [{"id": "l1", "name": "open"}]},
        ],
    },
}


class TestDocumentModelReader:
    def test_can_read(self):
        reader = DocumentModelReader()
        assert reader.can_read(DOCUMENT)
        assert not reader.can_read({"tables": []})
        assert not reader.can_read({"model": "not an element"})
        assert not reader.can_read([DOCUMENT])

    def test_read_document(self):
        document = DocumentModelReader().read_document(DOCUMENT)
        assert document.model is DOCUMENT["model"]
        assert document.profiles == DOCUMENT["profiles"]

    def test_resolves_ids_of_model_and_profiles(self):
        document = DocumentModelReader().read_document(DOCUMENT)
        for element_id in ("m", "c1", "a1", "o1", "x1", "s1", "e1", "l1", "p1", "st1"):
            assert document.resolve(element_id) is not None
        assert document.resolve("c1")["name"] == "Order"
        assert document.resolve("missing") is None
        assert document.resolve(None) is None

    def test_unreadable_data(self):
        assert DocumentModelReader().read_document({"foo": 1}) is None

    def test_profiles_must_be_a_list(self, caplog):
        with caplog.at_level(logging.WARNING):
            document = DocumentModelReader().read_document({"model": {}, "profiles": {"a": 1}})
        assert document.profiles == []
        assert "profiles" in caplog.text


def test_iter_elements_is_depth_first():
    order = [e.get("id") for e in iter_elements(DOCUMENT["model"])]
    assert order == ["m", "c1", "a1", "o1", "x1", "s1", "e1", "l1"]
