#!/usr/bin/env python3
"""One-off script: download HYG v4.1 CSV, keep naked-eye stars, write data/hygdata_v3.csv.

The output keeps the HYG column names read by skyview.catalog.HygDatabaseLoader
(hip, proper, bayer, con, ra in hours, dec, mag, ci, rarad, decrad), brightest first.

Usage: python scripts/prepare_stars.py
"""
import csv
import urllib.request
from pathlib import Path

from skyview.config import load_config

HYG_URL = "https://raw.githubusercontent.com/astronexus/HYG-Database/refs/heads/main/hyg/CURRENT/hygdata_v41.csv"
RAW_CSV = Path(__file__).parent / "hygdata_v41.csv"
MAG_LIMIT = 6.5
COLUMNS = ["id", "hip", "proper", "bayer", "con", "ra", "dec", "mag", "ci", "rarad", "decrad"]


def download_csv() -> Path:
    """Download HYG CSV if not already cached locally. Returns path."""
    if not RAW_CSV.exists():
        print(f"Downloading {HYG_URL}...")
        urllib.request.urlretrieve(HYG_URL, RAW_CSV)
        print(f"Saved to {RAW_CSV}")
    else:
        print(f"Using cached {RAW_CSV}")
    return RAW_CSV


def filter_rows(csv_path: Path) -> list[dict]:
    """Rows with mag <= 6.5, the Sun excluded, sorted brightest first.

    HYG 'ra' stays in HOURS; the loader converts it (or uses rarad).
    """
    rows = []
    with open(csv_path, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            mag_str = row.get("mag", "")
            if not mag_str or float(mag_str) > MAG_LIMIT:
                continue
            if row.get("proper") == "Sol":
                continue
            rows.append({key: row.get(key, "") for key in COLUMNS})

    rows.sort(key=lambda r: float(r["mag"]))
    return rows


def write_csv(rows: list[dict], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=COLUMNS)
        writer.writeheader()
        writer.writerows(rows)
    size_kb = output_path.stat().st_size / 1024
    print(f"Wrote {len(rows)} stars to {output_path} ({size_kb:.0f} KB)")


def main() -> None:
    csv_path = download_csv()
    write_csv(filter_rows(csv_path), load_config().stars_path)


if __name__ == "__main__":
    main()
