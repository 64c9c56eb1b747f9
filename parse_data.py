# parse_data.py
"""
Parse a phone-stock CSV and print basic stats without touching the database.
"""

from scripts.ingest import parse_phones_csv, FILE_PATH


def main():
    phones_list, stats = parse_phones_csv(FILE_PATH)

    print(f"Total CSV rows read:   {stats['n_rows']}")
    print(f"Phones parsed:         {stats['n_phones']}")
    print(f"Rows with errors:      {stats['n_errors']}")
    print(f"Duplicate IMEIs:       {stats['n_duplicate_imeis']}")

    if stats["error_examples"]:
        print("\nExample errors:")
        for ex in stats["error_examples"]:
            print(f"- Row {ex['row_number']}: {ex['error']}")


if __name__ == "__main__":
    main()
