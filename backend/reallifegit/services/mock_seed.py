"""Utility helpers to seed a data store with deterministic mock data."""
from __future__ import annotations

import json
import random
from argparse import ArgumentParser
from typing import TYPE_CHECKING, Optional

from reallifegit.dtos.store import StoreStats
from reallifegit.services.mock_data import MockDataGenerator

if TYPE_CHECKING:
    from reallifegit.services.data_store import DataStore


def seed_store(store: "DataStore", project_count: int = 2, seed: Optional[int] = 42) -> StoreStats:
    """
    Generate ``project_count`` complete projects and load them into ``store``.

    Content comes from ``random.Random(seed)``; ids come from the store's own
    identifier factory so they never collide with ids it issues later.
    """
    generator = MockDataGenerator(rng=random.Random(seed), id_factory=store.id_factory)
    data = generator.generate_mock_data_set(project_count)
    return store.load(data)


def cli() -> None:
    from reallifegit.config import Settings
    from reallifegit.core.logging import setup_logging
    from reallifegit.services.data_store import DataStore

    parser = ArgumentParser(description="Seed a RealLifeGit data store with mock data.")
    parser.add_argument("--count", type=int, default=None, help="Number of projects to generate.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for generated content.")
    parser.add_argument("--graph", action="store_true", help="Also print the first project's graph.")
    args = parser.parse_args()

    settings = Settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    store = DataStore(settings=settings)
    stats = seed_store(
        store,
        project_count=args.count if args.count is not None else settings.SEED_PROJECT_COUNT,
        seed=args.seed if args.seed is not None else settings.SEED_RANDOM_SEED,
    )
    output = {"stats": stats.model_dump(by_alias=True)}

    if args.graph:
        first = store.list_projects({"limit": 1, "sortBy": "createdAt", "sortOrder": "asc"})
        if first.data:
            graph = store.get_project_graph(first.data[0].id)
            output["graph"] = graph.model_dump(mode="json", by_alias=True)

    print(json.dumps(output, indent=2, default=str))


if __name__ == "__main__":
    cli()
