from typing import Dict, List

# Static region dataset: display name and route code for every province.
REGIONS: List[Dict[str, str]] = [
    {"name": "Province 1", "code": "P1"},
    {"name": "Province 2", "code": "P2"},
    {"name": "Bagmati", "code": "P3"},
    {"name": "Gandaki", "code": "P4"},
    {"name": "Province 5", "code": "P5"},
    {"name": "Karnali", "code": "P6"},
    {"name": "Sudurpashchim", "code": "P7"},
]

# reverse lookup, display name -> route code
REGION_CODES: Dict[str, str] = {region["name"]: region["code"] for region in REGIONS}

# Quick picks shown next to an empty search box.
ESSENTIAL_SUGGESTIONS = [
    "Covid19-Testing Labs",
    "Quarantine Center",
    "Health Facility",
    "Medical College",
    "District Level Hospital",
]

LOCATION_SUGGESTIONS = [
    "Kathmandu",
    "Rautahat",
    "Chitwan",
    "Baglung",
    "Udayapur",
]

TESTING_CATEGORY_LABEL = "Covid19-Testing Labs"
