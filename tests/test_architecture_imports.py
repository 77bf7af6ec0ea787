from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
FORBIDDEN = ("from services", "import services", "import streamlit", "from streamlit")


def test_analysis_not_import_services_or_ui():
    bad = []
    for p in (ROOT / "analysis").rglob("*.py"):
        try:
            t = p.read_text(encoding="utf-8", errors="ignore")
        except Exception:
            continue
        if any(x in t for x in FORBIDDEN):
            bad.append(str(p))
    assert not bad, f"analysis must not import services or streamlit: {bad}"
