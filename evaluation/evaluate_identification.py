# file: evaluation/evaluate_identification.py
# -*- coding: utf-8 -*-
"""
Prüft Stabilität und Laufzeit der PID-Identifikation.

Ablauf:
- Lädt die vorregistrierten Provider (app/data/providers.json)
- Führt identify() für eine Liste von Beispiel-Eingaben mehrfach aus
- Prüft, ob jede Eingabe in allen Durchläufen gleich klassifiziert wird
- Berechnet Mittelwert, Standardabweichung und Variationskoeffizient (CV)
  der Laufzeit pro Durchlauf
- Speichert Ergebnisse als JSON in evaluation/results/identification.json

Aufruf:
    python3 evaluation/evaluate_identification.py [runs] [eingabe ...]
"""

import os
import sys
import json
import time
import statistics

# Projektpfad einbinden
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.core.config import settings
from app.modules.identification.engine import IdentificationEngine
from app.modules.registry.loader import load_providers_file
from app.modules.registry.provider_service import ProviderService
from app.modules.registry.store import ProviderStore

RESULTS_PATH = os.path.join(os.path.dirname(__file__), "results", "identification.json")

SAMPLE_INPUTS = [
    "ark:/13030/tf5p30086k",
    "ark:/130",
    "10.1000/182",
    "doi:10.1000/182",
    "10.10",
    "swh:1:cnt:94a9ed024d3859793618152ea559a168bbcbb5e2",
    "urn:nbn:de:bvb:19-146642",
    "0000-0002-1825-0097",
    "arXiv:2101.00001",
    "not-an-id",
    "",
]


# ---------------------------------------------------------
# Einzel-Lauf
# ---------------------------------------------------------

def run_single(engine: IdentificationEngine, inputs: list) -> dict:
    """Klassifiziert alle Eingaben einmal und liefert {eingabe: (status, typ)}."""
    out = {}
    for text in inputs:
        result = engine.identify(text)
        out[text] = (result.status.value, result.type)
    return out


# ---------------------------------------------------------
# Stabilitätsanalyse
# ---------------------------------------------------------

def evaluate(inputs: list, runs: int = 50) -> dict:
    service = ProviderService(ProviderStore(), match_timeout=settings.MATCH_TIMEOUT)
    count = load_providers_file(settings.PROVIDERS_FILE, service)
    engine = IdentificationEngine(service.store, prefer_valid=settings.IDENTIFY_PREFER_VALID)

    print(f"\n📦 Provider geladen: {count}")
    print(f"🧪 Durchläufe: {runs}, Eingaben: {len(inputs)}\n")

    times = []
    classifications = []

    for i in range(runs):
        t0 = time.perf_counter()
        classifications.append(run_single(engine, inputs))
        times.append(time.perf_counter() - t0)

    # Jede Eingabe muss in allen Läufen identisch klassifiziert werden
    unstable = [
        text for text in inputs
        if len({c[text] for c in classifications}) > 1
    ]

    mean_t = statistics.mean(times)
    std_t = statistics.stdev(times) if len(times) > 1 else 0.0
    cv_t = (std_t / mean_t) if mean_t else 0.0

    summary = {
        "runs": runs,
        "providers": count,
        "prefer_valid": settings.IDENTIFY_PREFER_VALID,
        "mean_seconds_per_run": mean_t,
        "std_seconds_per_run": std_t,
        "cv_runtime": cv_t,
        "deterministic": not unstable,
        "unstable_inputs": unstable,
        "classification": {
            text: {"status": status, "type": type_}
            for text, (status, type_) in classifications[0].items()
        },
    }

    print("=" * 80)
    for text, (status, type_) in classifications[0].items():
        print(f"🔎 {text!r:60} → {status:9} {type_}")
    print("=" * 80)
    print(f"⏱️ Mittelwert: {mean_t * 1000:.3f} ms | σ: {std_t * 1000:.3f} ms | CV: {cv_t:.3f}")
    print("✅ Deterministisch" if not unstable else f"⚠️ Instabil: {unstable}")

    os.makedirs(os.path.dirname(RESULTS_PATH), exist_ok=True)
    with open(RESULTS_PATH, "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=4, ensure_ascii=False)
    print(f"💾 Ergebnis gespeichert unter: {RESULTS_PATH}")

    return summary


if __name__ == "__main__":
    args = sys.argv[1:]
    runs = 50
    if args and args[0].isdigit():
        runs = int(args.pop(0))
    evaluate(args or SAMPLE_INPUTS, runs=runs)
