#!/usr/bin/env python3
"""Performance benchmark for storefront normalization and filtering hot paths."""

from __future__ import annotations

import argparse
import time

from storefront_mcp.catalog import FilterSpec, build_facets, filter_vehicles
from storefront_mcp.clients.sheets import parse_csv
from storefront_mcp.data.inventory import set_controller, set_store
from storefront_mcp.data.store import InMemoryVehicleStore
from storefront_mcp.ingestion.pipeline import InventoryController
from storefront_mcp.normalization import normalize_batch
from storefront_mcp.tools.search import search_inventory_impl

BRANDS = ["Toyota", "Honda", "Proton", "Perodua", "BMW"]
MODELS = ["Vios", "City", "Saga", "Myvi", "320i"]
CITIES = ["Kuala Lumpur", "Penang", "Johor Bahru", "Ipoh", "Melaka"]


def make_row(i: int) -> dict:
    """A spreadsheet-shaped row with the messy formatting sellers actually use."""
    return {
        "ID": f"BM-{i:07d}",
        "Brand": BRANDS[i % 5],
        "Model": MODELS[i % 5],
        "Year": str(2010 + (i % 15)),
        "Price": f"RM{8_000 + (i % 300) * 150:,}",
        "Mileage": f"{5_000 + (i % 120_000):,} km",
        "Fuel Type": "Gasoline",
        "Transmission": "Automatic" if i % 4 else "Manual",
        "City": CITIES[i % 5],
        "Description": "Benchmark listing",
        "Images": "a.jpg, b.jpg ,c.jpg",
        "WhatsApp": "+60 12-345 6789",
    }


def make_csv(records: int) -> str:
    header = list(make_row(0))
    lines = [",".join(header)]
    for i in range(records):
        row = make_row(i)
        lines.append(",".join(f'"{row[name]}"' for name in header))
    return "\n".join(lines) + "\n"


# ── Benchmarks ────────────────────────────────────────────────────────


def bench_parse_and_normalize(records: int) -> tuple[float, float]:
    text = make_csv(records)
    start = time.perf_counter()
    vehicles = normalize_batch(parse_csv(text))
    elapsed = time.perf_counter() - start
    return elapsed, len(vehicles) / max(elapsed, 1e-9)


def bench_filter(records: int, repeats: int) -> dict[str, float]:
    vehicles = normalize_batch(make_row(i) for i in range(records))

    start = time.perf_counter()
    for i in range(repeats):
        filter_vehicles(vehicles, FilterSpec(brand=BRANDS[i % 5], price="15000-25000"))
    structured = time.perf_counter() - start

    start = time.perf_counter()
    for i in range(repeats):
        filter_vehicles(vehicles, FilterSpec(search=CITIES[i % 5].lower()))
    free_text = time.perf_counter() - start

    start = time.perf_counter()
    for _ in range(repeats):
        build_facets(vehicles)
    facets = time.perf_counter() - start

    return {"structured": structured, "free_text": free_text, "facets": facets}


def bench_search_tool(records: int, repeats: int) -> tuple[float, float]:
    store = InMemoryVehicleStore(normalize_batch(make_row(i) for i in range(records)))
    set_store(store)
    set_controller(InventoryController(store))

    search_inventory_impl(brand="Toyota", price="15000-25000")

    start = time.perf_counter()
    for _ in range(repeats):
        search_inventory_impl(brand="Toyota", price="15000-25000")
    elapsed = time.perf_counter() - start
    set_store(None)
    set_controller(None)
    return elapsed, (elapsed / max(repeats, 1)) * 1000


# ── Main ──────────────────────────────────────────────────────────────


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark storefront hot paths.")
    parser.add_argument("--records", type=int, default=20_000)
    parser.add_argument("--repeats", type=int, default=50)
    args = parser.parse_args()

    print("storefront_hot_path_benchmark")
    print(f"records={args.records}")
    print(f"repeats={args.repeats}")
    print()

    elapsed, rps = bench_parse_and_normalize(args.records)
    print(f"parse_and_normalize_seconds={elapsed:.6f}")
    print(f"parse_and_normalize_rows_per_sec={rps:.0f}")
    print()

    timings = bench_filter(args.records, args.repeats)
    for name, value in timings.items():
        print(f"filter_{name}_seconds={value:.6f}")
    print()

    tool_elapsed, per_call_ms = bench_search_tool(args.records, args.repeats // 5 or 1)
    print(f"search_tool_seconds={tool_elapsed:.6f}")
    print(f"search_tool_ms_per_call={per_call_ms:.3f}")


if __name__ == "__main__":
    main()
