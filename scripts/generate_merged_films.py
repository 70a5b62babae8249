#!/usr/bin/env python3
"""Pre-generate data/merged-films.json so page loads skip the merge step"""
import logging
import os
import sys
import time

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from database.films_db import write_merged_films, merged_path  # noqa: E402
from database.film_store import FilmStoreError  # noqa: E402

logger = logging.getLogger('generate_merged_films')


def generate_merged_films():
    start = time.time()
    films = write_merged_films()
    logger.info(f"Generated merged films file: {merged_path()}")
    logger.info(f"{len(films)} films merged in {time.time() - start:.2f}s")
    return films


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        generate_merged_films()
    except (OSError, ValueError, FilmStoreError) as e:
        logger.error(f"Error generating merged films: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
