#!/usr/bin/env python3
"""
Generates sample-data/sample_ledger.xlsx and sample-data/extracted_records.json
for trying waste-ledger end to end.

Run from the repo root:
    python sample-data/generate_ledger.py
    waste-ledger augment sample-data/sample_ledger.xlsx sample-data/extracted_records.json

What is baked in:
  Sheet "150101 12345678"
    - Title rows above the header, header on row 3
    - Two existing movements; the second one is repeated in the records
  Sheet "200101 87654321_2"
    - Variant suffix, matched by prefix from "200101 87654321"
    - Header uses "Množství vzniku" / "Množství předaného" on cols C and D
  Sheet "170405 11223344"
    - Empty ledger, only the header row
  Records
    - One item whose sheet does not exist (reported, not created)
    - One movement with only the transferred amount filled in
    - One US-style "04/03/2024" date (month-first)
"""

import json
from datetime import datetime
from pathlib import Path

import openpyxl

OUTPUT_DIR = Path(__file__).parent
LEDGER = OUTPUT_DIR / "sample_ledger.xlsx"
RECORDS = OUTPUT_DIR / "extracted_records.json"

wb = openpyxl.Workbook()

# ── Sheet 1: paper / cardboard, recipient 12345678 ──────────────────────────
ws = wb.active
ws.title = "150101 12345678"
ws["A1"] = "Průběžná evidence odpadů"
ws["A2"] = "Odběratel: Sběrné suroviny s.r.o., IČO 12 345 678"
ws.append(["Pořadové číslo", "Datum", "Množství vzniku", "Množství předaného", "Poznámka"])
ws.append([1, datetime(2024, 3, 1), 12.5, None, ""])
ws.append([2, datetime(2024, 3, 15), 8.25, None, "svoz"])
for row in ws.iter_rows(min_row=4, max_row=5, min_col=2, max_col=3):
    row[0].number_format = "d.m.yyyy"
    row[1].number_format = "0.00"

# ── Sheet 2: mixed municipal waste, variant sheet name ──────────────────────
ws = wb.create_sheet("200101 87654321_2")
ws.append(["Datum vzniku", "Množství", "Množství vzniku", "Množství předaného"])

# ── Sheet 3: empty ledger ───────────────────────────────────────────────────
ws = wb.create_sheet("170405 11223344")
ws.append(["Č.", "Datum", "Množství vzniku", "Množství předaného"])

wb.save(LEDGER)

records = {
    "extracted_data": [
        {
            "kód odpadu": "150101",
            "název/druh odpadu": "Papírové a lepenkové obaly",
            "odběratel": {"IČO": "12 345 678", "název": "Sběrné suroviny s.r.o."},
            "původce": {"IČO": "99887766", "název": "Výrobní závod a.s."},
            "tabulka": [
                {"datum vzniku": "15.3.2024", "množství vzniku": "8.25"},
                {"datum vzniku": "04/03/2024", "množství vzniku": "3,1 t"},
                {"datum vzniku": "2.4.2024", "množství předaného": "6"},
            ],
        },
        {
            "kód odpadu": "200101",
            "název/druh odpadu": "Papír a lepenka",
            "odběratel": {"IČO": "87654321", "název": "Městské služby"},
            "tabulka": [{"datum vzniku": "1.1.2025", "množství vzniku": "10,00"}],
        },
        {
            "kód odpadu": "170405",
            "původce": {"IČO": "11223344"},
            "odběratel": {"IČO": "55555555"},
            "tabulka": [{"datum vzniku": "7.2.2025", "množství vzniku": "1.75"}],
        },
        {
            "kód odpadu": "160103",
            "název/druh odpadu": "Pneumatiky",
            "odběratel": {"IČO": "44444444", "název": "Pneuservis"},
            "tabulka": [{"datum vzniku": "20.2.2025", "množství vzniku": "0.4"}],
        },
    ]
}
RECORDS.write_text(json.dumps(records, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")

print(f"Saved: {LEDGER}")
print(f"Saved: {RECORDS}")
