"""Tests for profile analysis: sector, size band, entity types and keyword extraction."""

import pytest

from subsidy_matcher.models.profile import WebsiteIntelligence
from subsidy_matcher.services.profile_analyzer import (
    analyze_profile,
    dedupe,
    extract_search_terms,
    extract_thematic_keywords,
    get_company_size_category,
    get_entity_types,
    get_sector_from_naf_code,
)
from subsidy_matcher.taxonomy import DEFAULT_ENTITY_TYPES, SECTOR_EXCLUSIONS

from tests.fakes import make_profile


@pytest.mark.parametrize("naf_code, sector", [
    ("01.21Z", "Agriculture"),
    ("62.01Z", "Numérique"),
    ("41.20A", "BTP"),
    ("ZZ.99", None),
    ("", None),
    (None, None),
])
def test_sector_from_naf_code(naf_code, sector):
    assert get_sector_from_naf_code(naf_code) == sector


@pytest.mark.parametrize("employees, category", [
    (None, "TPE"),
    ("3", "TPE"),
    ("9", "TPE"),
    ("10-49", "PME"),
    ("249", "PME"),
    ("250+", "ETI"),
    ("4999", "ETI"),
    ("5000", "GE"),
    ("non communiqué", "TPE"),
])
def test_company_size_category(employees, category):
    assert get_company_size_category(employees) == category


def test_entity_types_exact_form_beats_shorter_prefix():
    sas = get_entity_types("SAS")
    sasu = get_entity_types("sasu")
    sa = get_entity_types("SA")

    assert "TPE" in sas and "ETI" in sas
    assert "Startup" in sasu and "ETI" not in sasu
    assert "TPE" not in sa and "GE" in sa


def test_entity_types_substring_uses_longest_form():
    assert get_entity_types("Société SARL") == get_entity_types("SARL")


def test_entity_types_defaults():
    assert get_entity_types(None) == list(DEFAULT_ENTITY_TYPES)
    assert get_entity_types("   ") == list(DEFAULT_ENTITY_TYPES)
    assert get_entity_types("XYZ") == ["Entreprise"]


def test_dedupe_keeps_first_seen_order():
    assert dedupe(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


def test_search_terms_collect_profile_fields():
    profile = make_profile(
        naf_label="Culture de la vigne",
        sub_sector="Viticulture",
        project_types=["Investissement"],
        certifications=["Agriculture biologique"],
    )

    terms = extract_search_terms(profile)

    assert terms[:2] == ["culture", "vigne"]
    assert "agriculture" in terms
    assert "viticulture" in terms
    assert "investissement" in terms
    assert "agriculture biologique" in terms
    assert "bio" in terms and "biologique" in terms


def test_search_terms_are_deduplicated_and_capped():
    profile = make_profile(
        sector="Export",
        project_types=["Export"] + [f"projet{i}" for i in range(40)],
    )

    terms = extract_search_terms(profile)

    assert len(terms) == 25
    assert terms.count("export") == 1


def test_search_terms_skip_generic_description_words():
    profile = make_profile(description="Notre entreprise développe des serres maraîchères")

    terms = extract_search_terms(profile)

    assert "entreprise" not in terms
    assert "développe" in terms
    assert "serres" in terms


def test_thematic_keywords_sector_and_certifications():
    profile = make_profile(certifications=["HVE niveau 3"])

    keywords = extract_thematic_keywords(profile)

    assert keywords[0] == "agricole"
    assert "haute valeur environnementale" in keywords
    assert "certification environnementale" in keywords


def test_thematic_keywords_signal_tiers():
    intelligence = WebsiteIntelligence.model_validate({
        "sustainability": {"score": 85},
        "innovations": {"score": 60},
        "export": {"score": 20},
    })
    profile = make_profile(sector=None, website_intelligence=intelligence)

    keywords = extract_thematic_keywords(profile)

    assert "développement durable" in keywords
    assert "carbone" in keywords
    assert "économie circulaire" in keywords
    assert "innovation" in keywords
    assert "brevet" not in keywords
    assert "export" not in keywords


def test_thematic_keywords_project_types():
    profile = make_profile(sector=None, project_types=["Export", "Recrutement"])

    keywords = extract_thematic_keywords(profile)

    assert keywords == ["export", "international", "emploi", "recrutement"]


def test_analyze_profile_derives_all_fields():
    profile = make_profile(sector=None, naf_code="01.21Z", employees="10-49", year_created=2019,
                           annual_turnover=0)

    analyzed = analyze_profile(profile, current_year=2024)

    assert analyzed.sector == "Agriculture"
    assert analyzed.size_category == "PME"
    assert analyzed.entity_type == "EARL"
    assert analyzed.region == "Occitanie"
    assert analyzed.company_age == 5
    assert analyzed.annual_turnover == 0
    assert analyzed.exclusion_keywords == list(SECTOR_EXCLUSIONS["Agriculture"])


def test_analyze_profile_declared_sector_wins_over_naf():
    profile = make_profile(sector="BTP", naf_code="01.21Z")

    assert analyze_profile(profile, current_year=2024).sector == "BTP"


def test_analyze_profile_without_sector_has_no_exclusions():
    profile = make_profile(sector=None, naf_code=None)

    analyzed = analyze_profile(profile, current_year=2024)

    assert analyzed.sector is None
    assert analyzed.exclusion_keywords == []


def test_analyze_profile_is_deterministic():
    profile = make_profile(
        description="Exploitation durable en transformation de produits",
        certifications=["Agriculture biologique"],
        year_created=2015,
    )

    assert analyze_profile(profile, current_year=2024) == analyze_profile(profile, current_year=2024)
