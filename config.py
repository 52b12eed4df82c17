# --- Configuration --------------------------------------------------------------------------------

import logging

logger = logging.getLogger(__name__)

DOMAINS = {
    "EDM": "Evaluate, Direct and Monitor",
    "APO": "Align, Plan and Organize",
    "BAI": "Build, Acquire and Implement",
    "DSS": "Deliver, Service and Support",
    "MEA": "Monitor, Evaluate and Assess",
}

SUBDOMAINS = {
    # EDM
    "EDM01": "Memastikan Kerangka Tata Kelola Ditetapkan dan Dipelihara",
    "EDM02": "Memastikan Penghantaran Manfaat",
    "EDM03": "Memastikan Optimalisasi Risiko",
    "EDM04": "Memastikan Optimalisasi Sumber Daya",
    "EDM05": "Memastikan Keterlibatan Pemangku Kepentingan",
    # APO
    "APO01": "Mengelola Kerangka Manajemen TI",
    "APO02": "Mengelola Strategi",
    "APO03": "Mengelola Arsitektur Perusahaan",
    "APO04": "Mengelola Inovasi",
    "APO05": "Mengelola Portfolio",
    "APO06": "Mengelola Anggaran dan Biaya",
    "APO07": "Mengelola Sumber Daya Manusia",
    "APO08": "Mengelola Hubungan",
    "APO09": "Mengelola Perjanjian Layanan",
    "APO10": "Mengelola Vendor",
    "APO11": "Mengelola Kualitas",
    "APO12": "Mengelola Risiko",
    "APO13": "Mengelola Keamanan",
    "APO14": "Mengelola Data",
    # BAI
    "BAI01": "Mengelola Program",
    "BAI02": "Mengelola Definisi Persyaratan",
    "BAI03": "Mengelola Identifikasi dan Pembangunan Solusi",
    "BAI04": "Mengelola Ketersediaan dan Kapasitas",
    "BAI05": "Mengelola Perubahan Organisasi",
    "BAI06": "Mengelola Perubahan TI",
    "BAI07": "Mengelola Penerimaan dan Transisi Perubahan TI",
    "BAI08": "Mengelola Pengetahuan",
    "BAI09": "Mengelola Aset",
    "BAI10": "Mengelola Konfigurasi",
    "BAI11": "Mengelola Proyek",
    # DSS
    "DSS01": "Mengelola Operasi",
    "DSS02": "Mengelola Permintaan Layanan dan Insiden",
    "DSS03": "Mengelola Masalah",
    "DSS04": "Mengelola Kontinuitas",
    "DSS05": "Mengelola Layanan Keamanan",
    "DSS06": "Mengelola Kontrol Proses Bisnis",
    # MEA
    "MEA01": "Mengelola Pemantauan Kinerja dan Kesesuaian",
    "MEA02": "Memantau, Mengevaluasi, dan Menilai Sistem Pengendalian Internal",
    "MEA03": "Memantau, Mengevaluasi, dan Menilai Kepatuhan terhadap Persyaratan Eksternal",
    "MEA04": "Memantau, Mengevaluasi, dan Menilai Jaminan",
}

# COBIT 2019 capability scale, 0..5
MIN_LEVEL = 0
MAX_LEVEL = 5
TARGET_LEVEL = 5

MATURITY_LEVELS = {
    0: {
        "name": "Incomplete Process",
        "id": "Proses tidak diimplementasikan atau gagal mencapai tujuannya.",
        "en": "The process is not implemented or fails to achieve its purpose.",
    },
    1: {
        "name": "Performed Process",
        "id": "Proses diimplementasikan dan mencapai tujuannya, tetapi belum terstandarisasi.",
        "en": "The process is implemented and achieves its purpose, but is not standardized.",
    },
    2: {
        "name": "Managed Process",
        "id": "Proses direncanakan, dipantau, dan disesuaikan; hasil kerja dikendalikan.",
        "en": "The process is planned, monitored and adjusted; work products are controlled.",
    },
    3: {
        "name": "Established Process",
        "id": "Proses menggunakan prosedur yang ditetapkan dengan pemantauan kepatuhan.",
        "en": "The process follows a defined procedure with compliance monitoring.",
    },
    4: {
        "name": "Predictable Process",
        "id": "Proses diukur secara kuantitatif dan beroperasi secara stabil.",
        "en": "The process is quantitatively measured and operates predictably.",
    },
    5: {
        "name": "Optimizing Process",
        "id": "Proses terus ditingkatkan untuk memenuhi tujuan bisnis saat ini dan masa depan.",
        "en": "The process is continuously improved to meet current and future business goals.",
    },
}

MATURITY_OPTIONS = [
    {"label": f"{lvl} • {info['name']}", "value": lvl}
    for lvl, info in MATURITY_LEVELS.items()
]

# Gap tiers, checked top-down, first strict ">" match wins.
# Heat-map scheme (four tiers).
GAP_TIERS = [
    (3, "Critical"),
    (2, "High"),
    (1, "Medium"),
]
GAP_TIER_DEFAULT = "Low"

TIER_COLORS = {
    "Critical": {"label": "Red", "hex": "#ff6384"},
    "High": {"label": "Orange", "hex": "#ff9f40"},
    "Medium": {"label": "Yellow", "hex": "#ffcd56"},
    "Low": {"label": "Green", "hex": "#4bc0c0"},
}

TIER_ACTIONS = {
    "Critical": "Immediate action required",
    "High": "High priority improvement needed",
    "Medium": "Moderate improvement needed",
    "Low": "Fine-tuning and optimization",
}

# Recommendation scheme (three priority labels).
PRIORITY_WEIGHTS = {"Tinggi": 3, "Sedang": 2, "Rendah": 1}

PRIORITY_COLORS = {
    "Tinggi": "#ff6464",
    "Sedang": "#ffb464",
    "Rendah": "#64c864",
}

# One template per gap branch; ">3" and ">2" both map to Tinggi.
RECS = [
    {
        "above": 3,
        "priority": "Tinggi",
        "description": (
            "Critical improvement needed in {domain_id} ({domain_name}). "
            "Establish basic governance processes and documentation."
        ),
        "impact": "Significant improvement in organizational IT governance and risk management.",
    },
    {
        "above": 2,
        "priority": "Tinggi",
        "description": (
            "Major improvement required in {domain_id} ({domain_name}). "
            "Formalize existing processes and implement metrics."
        ),
        "impact": "Enhanced operational effectiveness and reduced IT-related incidents.",
    },
    {
        "above": 1,
        "priority": "Sedang",
        "description": (
            "Moderate enhancement needed in {domain_id} ({domain_name}). "
            "Focus on standardizing processes and measuring outcomes."
        ),
        "impact": "Improved consistency in IT operations and better alignment with business objectives.",
    },
    {
        "above": None,
        "priority": "Rendah",
        "description": (
            "Minor refinement recommended for {domain_id} ({domain_name}). "
            "Optimize existing processes and focus on continuous improvement."
        ),
        "impact": "Operational excellence and industry-leading IT governance practices.",
    },
]

# Illustrative improvement curve: share of the gap closed at each checkpoint.
TREND_CHECKPOINTS = ["Saat ini / Now", "+3 bulan / +3 mo", "+6 bulan / +6 mo", "+9 bulan / +9 mo", "+12 bulan / +12 mo"]
TREND_FRACTIONS = [0, 0.2, 0.4, 0.7, 0.9]

LANGUAGES = ["id", "en"]

NARRATIVE = {
    "id": (
        "Laporan ini menyajikan hasil penilaian audit COBIT 2019 untuk {count} domain. "
        "Tingkat kematangan TI organisasi secara keseluruhan adalah {overall:.2f} dari 5. "
        "Domain dengan kinerja tertinggi adalah {best_id} ({best_name}) pada level {best_level:.2f}, "
        "sedangkan domain dengan kinerja terendah adalah {worst_id} ({worst_name}) pada level {worst_level:.2f}. "
        "Rata-rata kesenjangan terhadap target adalah {gap:.2f}."
    ),
    "en": (
        "This report presents the assessment results of a COBIT 2019 audit conducted for {count} domains. "
        "The overall organizational IT maturity level is {overall:.2f} out of 5. "
        "The highest performing domain is {best_id} ({best_name}) at level {best_level:.2f}, "
        "while the lowest performing domain is {worst_id} ({worst_name}) at level {worst_level:.2f}. "
        "The average gap to the target level is {gap:.2f}."
    ),
}

NO_DATA_NARRATIVE = {
    "id": "Tidak ada data kematangan yang tersedia untuk audit ini.",
    "en": "No maturity data available for this audit.",
}

# Sample question bank (2 per domain). Production catalogs are loaded from the backend.
QUESTIONS = [
    {
        "id": "EDM01-Q1",
        "domain_id": "EDM",
        "subdomain_id": "EDM01",
        "text": "A governance framework for enterprise IT is defined, approved and communicated.",
    },
    {
        "id": "EDM03-Q1",
        "domain_id": "EDM",
        "subdomain_id": "EDM03",
        "text": "IT risk appetite and tolerance are set by the board and reviewed periodically.",
    },
    {
        "id": "APO02-Q1",
        "domain_id": "APO",
        "subdomain_id": "APO02",
        "text": "The IT strategy is aligned with enterprise goals and has an approved roadmap.",
    },
    {
        "id": "APO12-Q1",
        "domain_id": "APO",
        "subdomain_id": "APO12",
        "text": "IT risks are identified, analysed and tracked in a maintained risk register.",
    },
    {
        "id": "BAI06-Q1",
        "domain_id": "BAI",
        "subdomain_id": "BAI06",
        "text": "IT changes follow a controlled request, approval and rollback process.",
    },
    {
        "id": "BAI09-Q1",
        "domain_id": "BAI",
        "subdomain_id": "BAI09",
        "text": "IT assets are inventoried with ownership and lifecycle status.",
    },
    {
        "id": "DSS02-Q1",
        "domain_id": "DSS",
        "subdomain_id": "DSS02",
        "text": "Incidents are logged, classified and resolved against agreed service levels.",
    },
    {
        "id": "DSS04-Q1",
        "domain_id": "DSS",
        "subdomain_id": "DSS04",
        "text": "Business continuity and recovery plans exist and are tested regularly.",
    },
    {
        "id": "MEA01-Q1",
        "domain_id": "MEA",
        "subdomain_id": "MEA01",
        "text": "IT performance metrics are collected and reported to management.",
    },
    {
        "id": "MEA03-Q1",
        "domain_id": "MEA",
        "subdomain_id": "MEA03",
        "text": "Compliance with external legal and regulatory requirements is monitored.",
    },
]


def _validate_config() -> None:
    """
    Check the sanity of the catalog and templates above.

    Logs warnings for questions with unknown domains/subdomains and for
    templates that do not cover every priority label.
    """
    bad_domains = [q["id"] for q in QUESTIONS if q["domain_id"] not in DOMAINS]
    bad_subdomains = [
        q["id"]
        for q in QUESTIONS
        if q["subdomain_id"] not in SUBDOMAINS
        or not q["subdomain_id"].startswith(q["domain_id"])
    ]
    missing_priorities = set(PRIORITY_WEIGHTS) - {r["priority"] for r in RECS}

    if bad_domains:
        logger.warning("[config warning] Questions with unknown domain: %s", bad_domains)
    if bad_subdomains:
        logger.warning(
            "[config warning] Questions with unknown subdomain: %s", bad_subdomains
        )
    if missing_priorities:
        logger.warning(
            "[config warning] No recommendation template for: %s",
            sorted(missing_priorities),
        )
    if len(TREND_FRACTIONS) != len(TREND_CHECKPOINTS):
        logger.warning("[config warning] Trend fractions and checkpoints differ in length")


_validate_config()
