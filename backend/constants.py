"""Fixed catalogs used by the work slip form and reports."""

OFFICES_IN_HOUSE = [
    "CASSO", "CTO", "CHOUSING", "COMELEC", "CEO", "CCRO", "CSWD", "PDAO",
    "CIPO/TCBIC", "NEGOSYO CENTER", "GSO-UTILITY", "BPLO", "CBO", "CLO",
    "CACCO", "CMO-SECRETARY", "CMO-BACKSTOPPING/FISCAL MGT.",
    "CMO-SPECIAL PERMITS", "CMO-ADMIN", "CMO-SPECIAL PROGRAMS/PROJECT CO",
    "CMO-IAS", "CMO-LIBRARY", "CMO-SPM", "CMO-EDUKASYON", "CMO-GAD",
    "CMO-MUSLIM AFFAIRS", "PEESO", "CHRMO", "BAC", "CPDO", "CPDO-MRP",
    "SP SECRETARIAT", "CICTMO", "CVMO", "COUNCILOR REVITA",
    "COUNCILOR CAASI", "COUNCILOR ELLIOT", "COUNCILOR AALA",
    "COUNCILOR COQUILLA", "COUNCILOR PEREZ/IPMR", "COUNCILOR UY-SALAZAR",
    "COUNCILOR CATAYAS", "COUNCILOR LEMOS", "COUNCILOR WAKAN",
    "COUNCILOR ONG", "SKCF DILG", "ABC", "CIO", "COA", "PCSO", "TCYDO",
]

OFFICES_ON_SITE = [
    "CEO – Motorpool", "CEO – Fabrication", "CEO – Maintenance",
    "CEO – Electrical", "CMO – Sports", "Tourism", "CLibrary", "CVET",
    "CVET-Slaughter", "CSU", "TMU", "CAGRO", "CENRO", "CADAC",
    "CHO-CANOCOTAN", "CHO-MABINI", "CDRRMO", "CEEO", "CARCHO",
    "CMO-INSPECTORATE", "GSO-PSD", "GSO-ADMIN", "CEO-CONSTRUCTION", "CMO-MUSIC",
]

OFFICES_INTERAGENCY = ["DEP-ED", "PAO", "PNP", "BJMP", "BARANGAY OFFICES"]

BARANGAY_OFFICES = [
    "Apokon", "Visayan", "La Filipina", "Mankilam", "Magugpo South",
    "Magugpo Poblacion", "Magugpo East", "Magugpo West", "San Isidro",
    "Nueva Fuerza", "Madaum", "Busaon", "Pandapan", "Liboganon",
    "New Balamban", "Cuambogan", "Canocotan", "Pagsabangan",
]

TECHNICIANS = [
    "Joyce Israel",
    "Nick Palaca",
    "Adrian Monton",
    "Vence Jabilles",
    "Balong Callena",
]

PRINTER_ISOLATION = "Printer isolation (reset,installation, printer sharing, and checking)"

REQUEST_TYPES = [
    "Computer isolation",
    "Software isolation installation and checking",
    "Network isolation installation and checking",
    "Hardware installation and checking",
    "Activation of operating system and MS office",
    "Password recovery",
    PRINTER_ISOLATION,
]

# Request types counted as Hardware in reports
REQUEST_HARDWARE = [
    "Computer isolation",
    "Network isolation installation and checking",
    "Hardware installation and checking",
    PRINTER_ISOLATION,
]

# Request types counted as Software in reports
REQUEST_SOFTWARE = [
    "Software isolation installation and checking",
    "Activation of operating system and MS office",
    "Password recovery",
]

PRINTER_BRANDS = ["Epson", "Canon", "HP", "Kyocera", "Brother"]

QUARTER_OPTIONS = [
    (1, "First Quarter (Jan, Feb, Mar)"),
    (2, "Second Quarter (Apr, May, Jun)"),
    (3, "Third Quarter (Jul, Aug, Sep)"),
    (4, "Fourth Quarter (Oct, Nov, Dec)"),
]

AREA_IN_HOUSE = "In House"
AREA_ON_SITE = "On Site"
AREA_INTERAGENCY = "Interagency"
AREAS = [AREA_IN_HOUSE, AREA_ON_SITE, AREA_INTERAGENCY]

OFFICE_CATALOG = {
    AREA_IN_HOUSE: OFFICES_IN_HOUSE,
    AREA_ON_SITE: OFFICES_ON_SITE,
    AREA_INTERAGENCY: OFFICES_INTERAGENCY + BARANGAY_OFFICES,
}


def get_office_catalog(area: str | None) -> list[str]:
    """Return the offices selectable for an area (empty when no area is chosen)."""
    if not area:
        return []
    return list(OFFICE_CATALOG.get(area, []))


def get_request_category(request: str) -> str | None:
    """Classify a request type as 'hardware', 'software' or None."""
    if request in REQUEST_HARDWARE:
        return "hardware"
    if request in REQUEST_SOFTWARE:
        return "software"
    return None
