import os
import asyncio
import pandas as pd
import csv
from typing import List
import sys
from loguru import logger

from eatsafe.bulk import batch_iter
from eatsafe.config import INPUT_CSV, OUTPUT_CSV, BATCH_SIZE, LOG_LEVEL
from eatsafe.engine import build_collaborators, close_collaborators, resolve_hygiene
from eatsafe.formatting import format_summary
from eatsafe.models import HygieneLookup, Query
from eatsafe.sources import Collaborators

OUTPUT_COLUMNS = ["Name", "Region", "Status", "Grade", "Violations", "TrustScore", "TrustGrade", "Message"]


def load_queries_from_csv(file_path: str, nrows: int = None) -> List[Query]:
    """Load restaurants from CSV (Name, Region columns) and convert to Query objects."""
    df = pd.read_csv(file_path, nrows=nrows, dtype=str)
    queries = []
    for _, row in df.iterrows():
        name = str(row["Name"]).strip() if pd.notna(row["Name"]) else ""
        region = str(row["Region"]).strip() if "Region" in row.index and pd.notna(row["Region"]) else ""
        if not region and "Address" in row.index and pd.notna(row["Address"]):
            # Fall back to the first two address tokens, e.g. "서울특별시 강남구"
            region = " ".join(str(row["Address"]).split()[:2])
        queries.append(Query(name=name, region=region))
    return queries


def to_row(query: Query, lookup: HygieneLookup) -> List[str]:
    """Flatten one lookup into an output CSV row."""
    if not lookup.success:
        return [query.name, query.region, lookup.error.code.value, "", "", "", "", lookup.error.message]

    data = lookup.data
    trust = data.trust_score
    return [
        query.name,
        query.region,
        "OK",
        data.record.hygiene.grade or "",
        str(data.violations.total_count),
        str(trust.score) if trust else "",
        trust.grade if trust else "",
        " | ".join(line.strip() for line in format_summary(data).splitlines()),
    ]


async def process_query(collaborators: Collaborators, query: Query) -> List[str]:
    """
    Resolve a single restaurant through the full hygiene pipeline.

    Args:
        collaborators (Collaborators): Shared data sources and cache.
        query (Query): Input restaurant.

    Returns:
        List[str]: Output CSV row for this restaurant.
    """
    if not query.name or not query.region:
        return [query.name, query.region, "INVALID", "", "", "", "", "Name and Region are required"]
    lookup = await resolve_hygiene(collaborators, query.name, query.region)
    return to_row(query, lookup)


async def main():
    """
    Orchestrate the full batch processing pipeline.

    - Loads input CSV in batches.
    - Resolves each batch concurrently.
    - Writes results incrementally to an output CSV.
    """
    all_queries = load_queries_from_csv(INPUT_CSV)

    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    # Initialize output file
    output_path = OUTPUT_CSV
    if os.path.exists(output_path):
        os.remove(output_path)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(OUTPUT_COLUMNS)

    collaborators = build_collaborators()
    try:
        for start_idx, batch in batch_iter(all_queries, BATCH_SIZE):
            logger.info(f"Processing rows {start_idx}..{start_idx + len(batch) - 1}")

            rows = await asyncio.gather(*[process_query(collaborators, query) for query in batch])

            with open(output_path, "a", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerows(rows)
        logger.info(f"Cache stats: {collaborators.cache.stats()}")
    finally:
        # Close client sessions to prevent unclosed connector warnings
        await close_collaborators(collaborators)

if __name__ == "__main__":
    asyncio.run(main())
