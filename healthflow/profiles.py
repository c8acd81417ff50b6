"""
Disease, Health-System and Country Profiles
===========================================
Lookup tables that seed a base parameter set before any AI intervention
is applied, and the builder that layers them:

    defaults -> health-system values -> disease rates
             -> health-system multipliers -> optional country adjustment

Weekly rates in DISEASE_PROFILES are calibrated to a moderate urban LMIC
system; HEALTH_SYSTEM_DEFAULTS scales them up or down.

Sources:
- WHO Global Health Observatory (incidence, case fatality)
- IHME GBD 2019 (disability weights)
- WHO-CHOICE (per-diem facility costs)
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional

from .ai_effects import freeze_table
from .exceptions import UnknownIdentifierError
from .parameters import Parameters, PerDiemCosts, sanitize_parameters, clamp_probabilities

logger = logging.getLogger(__name__)


# ============================================
# DISEASE PROFILES
# ============================================

DISEASE_NAMES = freeze_table({
    "congestive_heart_failure": "Congestive Heart Failure",
    "tuberculosis": "Tuberculosis",
    "childhood_pneumonia": "Childhood Pneumonia",
    "malaria": "Malaria",
    "fever": "Fever of Unknown Origin",
    "diarrhea": "Diarrheal Disease",
    "anemia": "Anemia",
    "hiv_management_chronic": "HIV Management (Chronic)",
    "high_risk_pregnancy_low_anc": "High-Risk Pregnancy (Low ANC)",
    "urti": "Upper Respiratory Tract Infection",
    "hiv_opportunistic": "HIV Opportunistic Infections",
})

DISEASE_PROFILES = freeze_table({
    "congestive_heart_failure": {
        "incidence_rate": 0.002, "disability_weight": 0.42, "mean_age_of_infection": 67,
        "mu_i": 0.01, "mu_u": 0.004, "mu_0": 0.03, "mu_1": 0.35, "mu_2": 0.55, "mu_3": 0.75,
        "delta_i": 0.08, "delta_u": 0.09, "delta_0": 0.04, "delta_1": 0.025, "delta_2": 0.015, "delta_3": 0.01,
        "rho_0": 0.70, "rho_1": 0.55, "rho_2": 0.35,
        "capacity_share": 0.08, "competition_sensitivity": 1.3, "clinical_priority": 0.85,
        "queue_abandonment_rate": 0.02, "queue_bypass_rate": 0.03, "queue_clearance_rate": 0.20,
    },
    "tuberculosis": {
        "incidence_rate": 0.003, "disability_weight": 0.333, "mean_age_of_infection": 35,
        "mu_i": 0.02, "mu_u": 0.005, "mu_0": 0.03, "mu_1": 0.04, "mu_2": 0.05, "mu_3": 0.06,
        "delta_i": 0.0035, "delta_u": 0.004, "delta_0": 0.0025, "delta_1": 0.002, "delta_2": 0.0015, "delta_3": 0.001,
        "rho_0": 0.85, "rho_1": 0.45, "rho_2": 0.30,
        "capacity_share": 0.05, "competition_sensitivity": 0.9, "clinical_priority": 0.7,
        "queue_abandonment_rate": 0.04, "queue_bypass_rate": 0.05, "queue_clearance_rate": 0.25,
    },
    "childhood_pneumonia": {
        "incidence_rate": 0.05, "disability_weight": 0.28, "mean_age_of_infection": 3,
        "mu_i": 0.10, "mu_u": 0.06, "mu_0": 0.70, "mu_1": 0.80, "mu_2": 0.85, "mu_3": 0.90,
        "delta_i": 0.045, "delta_u": 0.05, "delta_0": 0.02, "delta_1": 0.015, "delta_2": 0.01, "delta_3": 0.008,
        "rho_0": 0.60, "rho_1": 0.30, "rho_2": 0.20,
        "capacity_share": 0.15, "competition_sensitivity": 1.5, "clinical_priority": 0.9,
        "queue_abandonment_rate": 0.03, "queue_bypass_rate": 0.08, "queue_clearance_rate": 0.25,
    },
    "malaria": {
        "incidence_rate": 0.20, "disability_weight": 0.186, "mean_age_of_infection": 7,
        "mu_i": 0.15, "mu_u": 0.08, "mu_0": 0.75, "mu_1": 0.80, "mu_2": 0.90, "mu_3": 0.95,
        "delta_i": 0.025, "delta_u": 0.03, "delta_0": 0.005, "delta_1": 0.003, "delta_2": 0.002, "delta_3": 0.0015,
        "rho_0": 0.25, "rho_1": 0.20, "rho_2": 0.10,
        "capacity_share": 0.10, "competition_sensitivity": 1.2, "clinical_priority": 0.8,
        "queue_abandonment_rate": 0.06, "queue_bypass_rate": 0.15, "queue_clearance_rate": 0.40,
    },
    "fever": {
        "incidence_rate": 0.60, "disability_weight": 0.10, "mean_age_of_infection": 15,
        "mu_i": 0.30, "mu_u": 0.25, "mu_0": 0.55, "mu_1": 0.70, "mu_2": 0.80, "mu_3": 0.90,
        "delta_i": 0.012, "delta_u": 0.015, "delta_0": 0.008, "delta_1": 0.005, "delta_2": 0.003, "delta_3": 0.002,
        "rho_0": 0.30, "rho_1": 0.20, "rho_2": 0.10,
        "capacity_share": 0.12, "competition_sensitivity": 1.0, "clinical_priority": 0.6,
        "queue_abandonment_rate": 0.12, "queue_bypass_rate": 0.25, "queue_clearance_rate": 0.45,
    },
    "diarrhea": {
        "incidence_rate": 0.30, "disability_weight": 0.15, "mean_age_of_infection": 2,
        "mu_i": 0.35, "mu_u": 0.20, "mu_0": 0.85, "mu_1": 0.90, "mu_2": 0.80, "mu_3": 0.85,
        "delta_i": 0.02, "delta_u": 0.025, "delta_0": 0.003, "delta_1": 0.002, "delta_2": 0.0015, "delta_3": 0.001,
        "rho_0": 0.50, "rho_1": 0.30, "rho_2": 0.10,
        "capacity_share": 0.18, "competition_sensitivity": 1.4, "clinical_priority": 0.85,
        "queue_abandonment_rate": 0.08, "queue_bypass_rate": 0.18, "queue_clearance_rate": 0.40,
    },
    "anemia": {
        "incidence_rate": 0.05, "disability_weight": 0.06, "mean_age_of_infection": 15,
        "mu_i": 0.05, "mu_u": 0.01, "mu_0": 0.15, "mu_1": 0.20, "mu_2": 0.25, "mu_3": 0.30,
        "delta_i": 0.0005, "delta_u": 0.001, "delta_0": 0.0003, "delta_1": 0.0002, "delta_2": 0.001, "delta_3": 0.0008,
        "rho_0": 0.40, "rho_1": 0.30, "rho_2": 0.15,
        "capacity_share": 0.04, "competition_sensitivity": 0.8, "clinical_priority": 0.5,
        "queue_abandonment_rate": 0.10, "queue_bypass_rate": 0.12, "queue_clearance_rate": 0.35,
    },
    "hiv_management_chronic": {
        "incidence_rate": 0.01, "disability_weight": 0.078, "mean_age_of_infection": 30,
        "mu_i": 0.0, "mu_u": 0.0, "mu_0": 0.05, "mu_1": 0.10, "mu_2": 0.12, "mu_3": 0.15,
        "delta_i": 0.0065, "delta_u": 0.007, "delta_0": 0.004, "delta_1": 0.002, "delta_2": 0.0015, "delta_3": 0.001,
        "rho_0": 0.90, "rho_1": 0.18, "rho_2": 0.5,
        "capacity_share": 0.06, "competition_sensitivity": 0.7, "clinical_priority": 0.7,
        "queue_abandonment_rate": 0.02, "queue_bypass_rate": 0.02, "queue_clearance_rate": 0.30,
    },
    "high_risk_pregnancy_low_anc": {
        "incidence_rate": 0.02, "disability_weight": 0.30, "mean_age_of_infection": 28,
        "mu_i": 0.01, "mu_u": 0.005, "mu_0": 0.02, "mu_1": 0.10, "mu_2": 0.50, "mu_3": 0.60,
        "delta_i": 0.015, "delta_u": 0.02, "delta_0": 0.01, "delta_1": 0.005, "delta_2": 0.002, "delta_3": 0.001,
        "rho_0": 0.90, "rho_1": 0.70, "rho_2": 0.40,
        "capacity_share": 0.03, "competition_sensitivity": 2.0, "clinical_priority": 0.95,
        "queue_abandonment_rate": 0.01, "queue_bypass_rate": 0.02, "queue_clearance_rate": 0.15,
    },
    "urti": {
        "incidence_rate": 0.80, "disability_weight": 0.01, "mean_age_of_infection": 10,
        "mu_i": 0.70, "mu_u": 0.65, "mu_0": 0.75, "mu_1": 0.80, "mu_2": 0.85, "mu_3": 0.90,
        "delta_i": 0.00001, "delta_u": 0.00002, "delta_0": 0.00001, "delta_1": 0.000005,
        "delta_2": 0.000001, "delta_3": 0.000001,
        "rho_0": 0.05, "rho_1": 0.02, "rho_2": 0.01,
        "capacity_share": 0.20, "competition_sensitivity": 0.6, "clinical_priority": 0.3,
        "queue_abandonment_rate": 0.15, "queue_bypass_rate": 0.20, "queue_clearance_rate": 0.50,
    },
    "hiv_opportunistic": {
        "incidence_rate": 0.005, "disability_weight": 0.582, "mean_age_of_infection": 32,
        "mu_i": 0.0, "mu_u": 0.0, "mu_0": 0.08, "mu_1": 0.30, "mu_2": 0.55, "mu_3": 0.70,
        "delta_i": 0.002, "delta_u": 0.002, "delta_0": 0.0015, "delta_1": 0.0001, "delta_2": 0.0005, "delta_3": 0.02,
        "rho_0": 0.90, "rho_1": 0.60, "rho_2": 0.5,
        "capacity_share": 0.04, "competition_sensitivity": 1.6, "clinical_priority": 0.9,
        "queue_abandonment_rate": 0.01, "queue_bypass_rate": 0.01, "queue_clearance_rate": 0.15,
    },
})


# ============================================
# HEALTH-SYSTEM STRENGTH
# ============================================

# Stage key -> parameter field, per multiplier family
MU_FIELDS = {"I": "mu_i", "L0": "mu_0", "L1": "mu_1", "L2": "mu_2", "L3": "mu_3"}
DELTA_FIELDS = {"U": "delta_u", "I": "delta_i", "L0": "delta_0", "L1": "delta_1",
                "L2": "delta_2", "L3": "delta_3"}
RHO_FIELDS = {"L0": "rho_0", "L1": "rho_1", "L2": "rho_2"}


def _uniform(value):
    return {
        "mu": {stage: value for stage in MU_FIELDS},
        "delta": {stage: value for stage in DELTA_FIELDS},
        "rho": {stage: value for stage in RHO_FIELDS},
    }


HEALTH_SYSTEM_DEFAULTS = freeze_table({
    "moderate_urban_system": {
        "phi0": 0.65, "sigma_i": 0.25, "informal_care_ratio": 0.15,
        "regional_life_expectancy": 70,
        "per_diem_costs": {"I": 12, "F": 25, "L0": 20, "L1": 40, "L2": 120, "L3": 250},
        "multipliers": _uniform(1.0),
    },
    "weak_rural_system": {
        "phi0": 0.30, "sigma_i": 0.10, "informal_care_ratio": 0.40,
        "regional_life_expectancy": 55,
        "per_diem_costs": {"I": 5, "F": 10, "L0": 8, "L1": 20, "L2": 80, "L3": 200},
        "multipliers": {
            "mu": {"I": 0.6, "L0": 0.5, "L1": 0.5, "L2": 0.6, "L3": 0.7},
            "delta": {"U": 1.5, "I": 1.8, "L0": 2.0, "L1": 2.0, "L2": 1.8, "L3": 1.5},
            "rho": {"L0": 0.7, "L1": 0.6, "L2": 0.5},
        },
    },
    "strong_urban_system_lmic": {
        "phi0": 0.80, "sigma_i": 0.35, "informal_care_ratio": 0.10,
        "regional_life_expectancy": 75,
        "per_diem_costs": {"I": 15, "F": 30, "L0": 25, "L1": 50, "L2": 180, "L3": 350},
        "multipliers": {
            "mu": {"I": 1.2, "L0": 1.3, "L1": 1.3, "L2": 1.2, "L3": 1.1},
            "delta": {"U": 0.8, "I": 0.7, "L0": 0.6, "L1": 0.6, "L2": 0.7, "L3": 0.8},
            "rho": {"L0": 1.1, "L1": 1.1, "L2": 1.1},
        },
    },
    "fragile_conflict_system": {
        "phi0": 0.20, "sigma_i": 0.08, "informal_care_ratio": 0.60,
        "regional_life_expectancy": 50,
        "per_diem_costs": {"I": 4, "F": 15, "L0": 20, "L1": 40, "L2": 150, "L3": 400},
        "multipliers": {
            "mu": {"I": 0.4, "L0": 0.3, "L1": 0.4, "L2": 0.5, "L3": 0.6},
            "delta": {"U": 2.5, "I": 2.3, "L0": 2.0, "L1": 2.0, "L2": 1.7, "L3": 1.5},
            "rho": {"L0": 0.4, "L1": 0.3, "L2": 0.2},
        },
    },
    "high_income_system": {
        "phi0": 0.90, "sigma_i": 0.70, "informal_care_ratio": 0.05,
        "regional_life_expectancy": 82,
        "per_diem_costs": {"I": 30, "F": 80, "L0": 100, "L1": 250, "L2": 1000, "L3": 2500},
        "multipliers": {
            "mu": {"I": 1.5, "L0": 1.6, "L1": 1.7, "L2": 1.6, "L3": 1.5},
            "delta": {"U": 0.5, "I": 0.4, "L0": 0.3, "L1": 0.3, "L2": 0.4, "L3": 0.5},
            "rho": {"L0": 1.2, "L1": 1.2, "L2": 1.2},
        },
    },
    "rwanda_health_system": {
        "phi0": 0.92, "sigma_i": 0.65, "informal_care_ratio": 0.02,
        "regional_life_expectancy": 68,
        "per_diem_costs": {"I": 8, "F": 15, "L0": 10, "L1": 20, "L2": 80, "L3": 160},
        "multipliers": {
            "mu": {"I": 0.8, "L0": 0.35, "L1": 0.3, "L2": 0.35, "L3": 0.6},
            "delta": {"U": 1.1, "I": 1.2, "L0": 1.4, "L1": 1.6, "L2": 1.5, "L3": 1.2},
            "rho": {"L0": 0.6, "L1": 0.5, "L2": 0.6},
        },
    },
    # Everyone seeks care immediately; used to sanity-check flows
    "test_perfect_system": {
        "phi0": 1.0, "sigma_i": 1.0, "informal_care_ratio": 1.0,
        "regional_life_expectancy": 80,
        "per_diem_costs": {"I": 5, "F": 10, "L0": 15, "L1": 30, "L2": 100, "L3": 200},
        "multipliers": _uniform(1.0),
    },
})


# ============================================
# COUNTRIES
# ============================================

COUNTRY_PROFILES = freeze_table({
    "nigeria": {
        "name": "Nigeria", "code": "NGA", "region": "West Africa",
        "urban_population_pct": 0.52, "gdp_per_capita_usd": 2097,
        "health_expenditure_per_capita_usd": 71,
        "physician_density_per_1000": 0.4, "hospital_beds_per_1000": 0.5,
        "chw_bonus": 0.10,
    },
    "kenya": {
        "name": "Kenya", "code": "KEN", "region": "East Africa",
        "urban_population_pct": 0.28, "gdp_per_capita_usd": 1879,
        "health_expenditure_per_capita_usd": 88,
        "physician_density_per_1000": 0.2, "hospital_beds_per_1000": 1.4,
        "chw_bonus": 0.15,
    },
    "south_africa": {
        "name": "South Africa", "code": "ZAF", "region": "Southern Africa",
        "urban_population_pct": 0.67, "gdp_per_capita_usd": 6994,
        "health_expenditure_per_capita_usd": 499,
        "physician_density_per_1000": 0.9, "hospital_beds_per_1000": 2.3,
        "chw_bonus": 0.10,
    },
})


def _burden(incidence, mortality, care_seeking):
    return {"incidence": incidence, "mortality": mortality, "care_seeking": care_seeking}


COUNTRY_DISEASE_BURDENS = freeze_table({
    "nigeria": {
        "tuberculosis": _burden(0.8, 0.9, 0.7),
        "malaria": _burden(1.5, 1.3, 0.8),
        "childhood_pneumonia": _burden(1.8, 1.6, 0.6),
        "diarrhea": _burden(1.7, 1.5, 0.65),
        "hiv_management_chronic": _burden(0.6, 0.8, 0.8),
        "hiv_opportunistic": _burden(0.6, 0.9, 0.7),
        "fever": _burden(1.4, 1.3, 0.6),
        "urti": _burden(1.3, 1.1, 0.7),
        "anemia": _burden(1.4, 1.2, 0.7),
        "high_risk_pregnancy_low_anc": _burden(1.6, 1.5, 0.5),
        "congestive_heart_failure": _burden(1.2, 1.3, 0.6),
    },
    "kenya": {
        "tuberculosis": _burden(1.5, 1.4, 0.85),
        "malaria": _burden(1.1, 1.0, 0.9),
        "childhood_pneumonia": _burden(1.2, 1.1, 0.8),
        "diarrhea": _burden(1.1, 1.0, 0.8),
        "hiv_management_chronic": _burden(1.8, 1.5, 0.9),
        "hiv_opportunistic": _burden(2.0, 1.6, 0.85),
        "fever": _burden(1.2, 1.1, 0.8),
        "urti": _burden(1.1, 1.0, 0.85),
        "anemia": _burden(1.2, 1.1, 0.8),
        "high_risk_pregnancy_low_anc": _burden(1.3, 1.2, 0.7),
        "congestive_heart_failure": _burden(1.3, 1.2, 0.7),
    },
    "south_africa": {
        "tuberculosis": _burden(2.2, 1.8, 0.9),
        "hiv_management_chronic": _burden(2.5, 1.6, 0.95),
        "hiv_opportunistic": _burden(3.0, 2.0, 0.9),
        "childhood_pneumonia": _burden(1.3, 1.2, 0.85),
        "diarrhea": _burden(1.0, 0.9, 0.9),
        "malaria": _burden(0.3, 0.8, 0.95),
        "congestive_heart_failure": _burden(1.8, 1.4, 0.8),
        "anemia": _burden(1.5, 1.1, 0.8),
        "high_risk_pregnancy_low_anc": _burden(1.4, 1.3, 0.85),
        "urti": _burden(1.1, 1.0, 0.9),
        "fever": _burden(1.2, 1.1, 0.85),
    },
})

RURAL_MULTIPLIERS = freeze_table({
    "nigeria": {
        "phi0": 0.6, "sigma_i": 0.5, "informal_care_ratio": 1.6,
        "mu_0": 0.7, "mu_1": 0.6, "mu_2": 0.7, "mu_3": 0.75,
        "delta_u": 1.3, "delta_i": 1.3, "delta_0": 1.2, "delta_1": 1.2, "delta_2": 1.15, "delta_3": 1.1,
        "rho_0": 0.6, "rho_1": 0.5, "rho_2": 0.4,
    },
    "kenya": {
        "phi0": 0.7, "sigma_i": 0.6, "informal_care_ratio": 1.5,
        "mu_0": 0.8, "mu_1": 0.7, "mu_2": 0.75, "mu_3": 0.8,
        "delta_u": 1.3, "delta_i": 1.3, "delta_0": 1.2, "delta_1": 1.2, "delta_2": 1.15, "delta_3": 1.1,
        "rho_0": 0.7, "rho_1": 0.6, "rho_2": 0.5,
    },
    "south_africa": {
        "phi0": 0.6, "sigma_i": 0.5, "informal_care_ratio": 1.4,
        "mu_0": 0.7, "mu_1": 0.6, "mu_2": 0.7, "mu_3": 0.75,
        "delta_u": 1.3, "delta_i": 1.4, "delta_0": 1.25, "delta_1": 1.3, "delta_2": 1.2, "delta_3": 1.15,
        "rho_0": 0.6, "rho_1": 0.5, "rho_2": 0.4,
    },
})

# Rural multipliers never push a rate past these bounds
RURAL_FLOORS = freeze_table({"mu_0": 0.5, "mu_1": 0.4, "mu_2": 0.5, "mu_3": 0.6,
                             "rho_0": 0.4, "rho_1": 0.4, "rho_2": 0.4})
RURAL_CEILINGS = freeze_table({"delta_u": 1.5, "delta_i": 1.5, "delta_0": 1.4, "delta_1": 1.4,
                               "delta_2": 1.3, "delta_3": 1.2})

HIV_DISEASES = ("hiv_management_chronic", "hiv_opportunistic")


# ============================================
# LOOKUPS
# ============================================

def _lookup(table, key, kind):
    if key not in table:
        raise UnknownIdentifierError(
            f"Unknown {kind}: '{key}'. Valid: {', '.join(sorted(table))}",
            details={kind.replace(" ", "_"): key, "valid": sorted(table)}
        )
    return table[key]


def get_disease_profile(disease: str):
    return _lookup(DISEASE_PROFILES, disease, "disease")


def get_health_system(health_system: str):
    return _lookup(HEALTH_SYSTEM_DEFAULTS, health_system, "health system")


def get_country_profile(country: str):
    return _lookup(COUNTRY_PROFILES, country, "country")


def list_profiles() -> Dict[str, List[str]]:
    return {
        "diseases": sorted(DISEASE_PROFILES),
        "health_systems": sorted(HEALTH_SYSTEM_DEFAULTS),
        "countries": sorted(COUNTRY_PROFILES),
    }


# ============================================
# COUNTRY ADJUSTMENT
# ============================================

def infrastructure_multiplier(country: str) -> float:
    """0.8 to 1.0, saturating at 1.5 hospital beds per 1000"""
    profile = get_country_profile(country)
    bed_ratio = profile["hospital_beds_per_1000"] / 1.5
    return 0.8 + 0.2 * min(bed_ratio, 1.0)


def workforce_multiplier(country: str) -> float:
    """0.8 to 1.1 from physician density plus community health worker programmes"""
    profile = get_country_profile(country)
    physician_ratio = profile["physician_density_per_1000"] / 1.0
    return min(1.1, 0.8 + 0.3 * min(physician_ratio, 1.0) + profile["chw_bonus"])


def rural_multipliers(country: str, disease: str) -> Dict[str, float]:
    """Rural adjustment factors for a country, with disease-specific exceptions"""
    multipliers = dict(_lookup(RURAL_MULTIPLIERS, country, "country"))

    # Strong rural TB programme
    if country == "kenya" and disease == "tuberculosis":
        multipliers.update(mu_0=0.9, mu_1=0.85, rho_0=0.85)

    # Rural ART roll-out
    if country == "south_africa" and disease in HIV_DISEASES:
        multipliers.update(phi0=0.8, mu_1=0.8, delta_u=1.2)

    # Obstetric complications still get referred
    if disease == "high_risk_pregnancy_low_anc":
        multipliers["rho_0"] = min(0.9, multipliers["rho_0"] * 1.3)
        multipliers["rho_1"] = min(0.9, multipliers["rho_1"] * 1.3)

    return multipliers


def _vertical_program_effects(values: Dict[str, float], country: str,
                              disease: str, is_urban: bool) -> None:
    """Disease programmes that outperform the general system"""
    if country == "kenya" and disease == "tuberculosis":
        values["mu_0"] *= 1.2
        values["mu_1"] *= 1.3
        values["phi0"] = max(values["phi0"], 0.5)

    if country == "south_africa" and disease in HIV_DISEASES:
        values["mu_1"] *= 1.4
        values["mu_2"] *= 1.3
        values["delta_u"] *= 0.7
        values["phi0"] = max(values["phi0"], 0.7)

    if country == "nigeria" and disease == "malaria":
        values["mu_0"] *= 1.3
        values["phi0"] = max(values["phi0"], 0.4)

    if disease == "high_risk_pregnancy_low_anc":
        values["rho_0"] *= 1.5
        values["rho_1"] *= 1.4
        if not is_urban:
            values["phi0"] = max(values["phi0"], 0.35)


def adjust_for_country(params: Parameters, country: str, disease: str,
                       is_urban: bool = True) -> Parameters:
    """
    Apply a country's disease burden, rural access penalties, infrastructure
    and workforce capacity, and vertical disease programmes.
    """
    get_country_profile(country)
    names = ["incidence_rate", "phi0", "sigma_i", "informal_care_ratio"]
    names += list(MU_FIELDS.values()) + list(DELTA_FIELDS.values()) + list(RHO_FIELDS.values())
    values = {name: getattr(params, name) for name in names}

    burden = COUNTRY_DISEASE_BURDENS[country].get(disease)
    if burden:
        values["incidence_rate"] *= burden["incidence"]
        for name in DELTA_FIELDS.values():
            values[name] *= burden["mortality"]
        values["phi0"] *= burden["care_seeking"]

    if not is_urban:
        rural = rural_multipliers(country, disease)
        for name, factor in rural.items():
            if name in RURAL_FLOORS:
                factor = max(RURAL_FLOORS[name], factor)
            elif name in RURAL_CEILINGS:
                factor = min(RURAL_CEILINGS[name], factor)
            values[name] *= factor
        values["informal_care_ratio"] = min(1.0, values["informal_care_ratio"])

    capacity = infrastructure_multiplier(country) * workforce_multiplier(country)
    for name in ("mu_0", "mu_1", "mu_2", "mu_3"):
        values[name] *= capacity

    _vertical_program_effects(values, country, disease, is_urban)

    logger.debug(f"[Profiles] Adjusted {disease} for {country} ({'urban' if is_urban else 'rural'})")
    return replace(params, **values)


# ============================================
# BUILDER
# ============================================

def apply_health_system(params: Parameters, health_system: str) -> Parameters:
    """Set the system's direct values (care seeking, life expectancy, costs)"""
    system = get_health_system(health_system)
    return replace(
        params,
        phi0=system["phi0"],
        sigma_i=system["sigma_i"],
        informal_care_ratio=system["informal_care_ratio"],
        regional_life_expectancy=system["regional_life_expectancy"],
        per_diem_costs=PerDiemCosts(**system["per_diem_costs"]),
    )


def apply_system_multipliers(params: Parameters, health_system: str) -> Parameters:
    """Scale disease rates by the system's resolution, mortality and referral multipliers"""
    multipliers = get_health_system(health_system)["multipliers"]
    updates = {}
    for family, field_map in (("mu", MU_FIELDS), ("delta", DELTA_FIELDS), ("rho", RHO_FIELDS)):
        for stage, name in field_map.items():
            updates[name] = getattr(params, name) * multipliers[family].get(stage, 1.0)
    return replace(params, **updates)


def build_base_parameters(disease: str,
                          health_system: str = "moderate_urban_system",
                          country: Optional[str] = None,
                          is_urban: bool = True,
                          base: Optional[Parameters] = None) -> Parameters:
    """
    Pre-AI parameter set for a disease in a health system, optionally
    adjusted for a country. Unknown ids raise UnknownIdentifierError.
    """
    profile = get_disease_profile(disease)
    get_health_system(health_system)
    if country is not None:
        get_country_profile(country)

    params = base if base is not None else Parameters()
    params = apply_health_system(params, health_system)
    params = replace(params, **profile)
    params = apply_system_multipliers(params, health_system)

    if country is not None:
        params = adjust_for_country(params, country, disease, is_urban)

    return clamp_probabilities(sanitize_parameters(params))
