#!/usr/bin/env python3
"""
MOBI Library Dump
=================

This script demonstrates how to use mobimeta to:
1. Walk a directory of .mobi files
2. Print title, author and ISBN for each book
3. Save every cover next to its book

Usage:
    python examples/dump_library.py ~/Books
"""

import sys
from pathlib import Path

from mobimeta import ExthType, Metadata, MobiError


def main():
    library = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(".")

    for book in sorted(library.rglob("*.mobi")):
        # ======================================================================
        # 1. Decode the headers (fails fast on non-MOBI files)
        # ======================================================================
        try:
            meta = Metadata.from_file(book)
        except MobiError as e:
            print(f"{book.name}: skipped ({e})")
            continue

        # ======================================================================
        # 2. Title and EXTH fields; absent fields are None
        # ======================================================================
        print(meta.title_text)
        print(f"  Author: {meta.exth_text(ExthType.AUTHOR) or '-'}")
        print(f"  ISBN:   {meta.exth_text(ExthType.ISBN) or '-'}")

        # ======================================================================
        # 3. Cover image, resolved from the raw record table
        # ======================================================================
        cover = book.with_suffix(".cover.jpg")
        try:
            saved = meta.save_cover(cover)
        except MobiError as e:
            print(f"  Cover:  invalid ({e})")
            continue
        print(f"  Cover:  {cover.name if saved else 'none'}")


if __name__ == "__main__":
    main()
