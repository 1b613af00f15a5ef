"""Header synonym table and the resolver that suggests a column mapping."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

type ColumnMapping = dict[str, str | None]
type SynonymTable = Mapping[str, tuple[str, ...]]

# Field order matters: earlier fields claim headers first.
DEFAULT_SYNONYMS: Final[SynonymTable] = MappingProxyType(
    {
        "uniqueId": ("id fiche", "id", "uniqueid", "unique_id", "identifiant", "ref", "reference"),
        "name": (
            "nom",
            "name",
            "raison sociale",
            "raison_sociale",
            "entreprise",
            "société",
            "societe",
            "denomination",
            "dénomination",
            "nom de l'entreprise",
            "nom entreprise",
        ),
        "address": (
            "adresse",
            "address",
            "addresse",
            "rue",
            "voie",
            "adresse postale",
            "adresse_postale",
        ),
        "postalCode": (
            "code postal",
            "code_postal",
            "codepostal",
            "cp",
            "postal",
            "zip",
            "zipcode",
            "code post",
        ),
        "city": ("ville", "city", "commune", "localité", "localite"),
        "phone": (
            "téléphone",
            "telephone",
            "tel",
            "tél",
            "phone",
            "tel1",
            "téléphone 1",
            "telephone1",
            "fixe",
            "tel fixe",
        ),
        "mobile": (
            "mobile",
            "portable",
            "gsm",
            "tel2",
            "téléphone 2",
            "telephone2",
            "tel mobile",
            "cellulaire",
        ),
        "phone2": ("fax", "téléphone 3", "tel3", "autre tel", "autre téléphone"),
        "email": ("email", "mail", "e-mail", "courriel", "adresse mail", "adresse email"),
        "website": ("site", "site web", "website", "web", "url", "site internet"),
        "category": (
            "catégorie",
            "categorie",
            "category",
            "rubrique",
            "secteur",
            "activité",
            "activite",
            "type",
        ),
        "siret": ("siret", "n° siret", "numero siret", "numéro siret"),
        "siren": ("siren", "n° siren", "numero siren", "numéro siren"),
        "naf": ("naf", "code naf", "ape", "code ape", "activité principale"),
        "effectifCode": (
            "effectif",
            "effectif (code)",
            "code effectif",
            "tranche effectif",
            "nb salariés",
            "nombre salariés",
            "salariés",
            "employees",
        ),
        "effectifLabel": (
            "effectif label",
            "tranche",
            "effectif entreprise",
            "effectif de l'entreprise",
        ),
        "legalForm": ("forme juridique", "forme_juridique", "statut juridique", "legal form"),
        "capital": ("capital", "capital social"),
        "department": ("département", "departement", "dept", "dpt"),
        "region": ("région", "region"),
        "description": (
            "description",
            "activité",
            "activity",
            "commentaire",
            "notes",
            "observation",
        ),
        "services": ("services", "prestations"),
        "dirigeants": ("dirigeants", "dirigeant", "gérant", "gerant", "responsable", "contact"),
        "dateCreation": (
            "date création",
            "date de création",
            "date_creation",
            "création",
            "creation",
            "date création ent.",
        ),
        "lat": ("latitude", "lat", "y"),
        "lon": ("longitude", "lon", "lng", "long", "x"),
        "createdAt": ("date import", "date_import", "importé le", "created_at", "createdat"),
        "lastExportedAt": ("dernier export", "last_export", "exporté le", "lastexportedat"),
        "exportCount": ("nb exports", "exports", "export_count", "exportcount"),
        "sourceFile": ("source", "fichier source", "origine", "sourcefile"),
    }
)

CANONICAL_FIELDS: Final[tuple[str, ...]] = tuple(DEFAULT_SYNONYMS)


def _header_key(header: object) -> str:
    if header is None:
        return ""
    return str(header).lower().strip()


def resolve_headers(
    headers: Iterable[str],
    *,
    synonyms: SynonymTable = DEFAULT_SYNONYMS,
) -> ColumnMapping:
    """Suggest which source header feeds each canonical field.

    For every field (in table order) the synonyms are tried in priority order; a
    synonym selects the first header that equals or contains it. A header claimed
    by an earlier field is never reused: the next synonym is tried instead.
    Fields without a match are left out.
    """

    header_list = list(headers)
    lowered = [_header_key(header) for header in header_list]
    mapping: ColumnMapping = {}
    claimed: set[str] = set()

    for field_name, field_synonyms in synonyms.items():
        for synonym in field_synonyms:
            index = next(
                (i for i, header in enumerate(lowered) if header == synonym or synonym in header),
                None,
            )
            if index is None:
                continue
            header = header_list[index]
            if header in claimed:
                continue
            mapping[field_name] = header
            claimed.add(header)
            break

    return mapping


def apply_overrides(
    suggested: ColumnMapping,
    overrides: Mapping[str, str | None],
    *,
    headers: Iterable[str] | None = None,
) -> ColumnMapping:
    """Layer user choices over a suggested mapping.

    ``None`` unmaps a field. Unknown field names and, when ``headers`` is given,
    headers absent from the source file raise ``ValueError``.
    """

    known_headers = set(headers) if headers is not None else None
    mapping = dict(suggested)
    for field_name, header in overrides.items():
        if field_name not in CANONICAL_FIELDS:
            raise ValueError(f"Unknown field in column mapping: {field_name}")
        if header is None:
            mapping.pop(field_name, None)
            continue
        if known_headers is not None and header not in known_headers:
            raise ValueError(f"Column {header!r} for field {field_name} is not in the file")
        mapping[field_name] = header
    return mapping
