from __future__ import annotations

import pytest

from prospectdb.domain.ingest import DEFAULT_SYNONYMS, apply_overrides, resolve_headers


def test_resolve_headers_matches_case_insensitively() -> None:
    mapping = resolve_headers(["Nom", "Tel", "CP"])

    assert mapping == {"name": "Nom", "postalCode": "CP", "phone": "Tel"}


def test_resolve_headers_matches_substrings_and_trims() -> None:
    mapping = resolve_headers(["  Raison Sociale  ", "Adresse du siège", "Code Postal"])

    assert mapping["name"] == "  Raison Sociale  "
    assert mapping["address"] == "Adresse du siège"
    assert mapping["postalCode"] == "Code Postal"


def test_resolve_headers_never_reuses_a_claimed_header() -> None:
    # "Téléphone 2" contains "téléphone" and is claimed by phone first.
    mapping = resolve_headers(["Téléphone 2", "Portable"])

    assert mapping["phone"] == "Téléphone 2"
    assert mapping["mobile"] == "Portable"
    assert list(mapping.values()).count("Téléphone 2") == 1


def test_resolve_headers_takes_first_header_containing_synonym() -> None:
    mapping = resolve_headers(["Code NAF", "NAF"])

    assert mapping["naf"] == "Code NAF"


def test_resolve_headers_leaves_unmatched_fields_out() -> None:
    mapping = resolve_headers(["Remarque interne"])

    assert mapping == {}


def test_resolve_headers_accepts_injected_synonyms() -> None:
    mapping = resolve_headers(["Firma"], synonyms={"name": ("firma",)})

    assert mapping == {"name": "Firma"}


def test_default_synonyms_start_with_identifier() -> None:
    assert next(iter(DEFAULT_SYNONYMS)) == "uniqueId"


def test_apply_overrides_replaces_and_unmaps() -> None:
    suggested = {"name": "Nom", "phone": "Tel"}

    mapping = apply_overrides(
        suggested,
        {"phone": None, "city": "Ville"},
        headers=["Nom", "Tel", "Ville"],
    )

    assert mapping == {"name": "Nom", "city": "Ville"}
    assert suggested == {"name": "Nom", "phone": "Tel"}


def test_apply_overrides_rejects_unknown_field() -> None:
    with pytest.raises(ValueError, match="Unknown field"):
        apply_overrides({}, {"colour": "Couleur"})


def test_apply_overrides_rejects_missing_header() -> None:
    with pytest.raises(ValueError, match="not in the file"):
        apply_overrides({}, {"city": "Ville"}, headers=["Nom"])
