# load_data.py
"""
Load a phone-stock CSV into the database (upsert by IMEI).
"""

from scripts.ingest import parse_phones_csv, load_into_db, FILE_PATH


def main():
    phones_list, stats = parse_phones_csv(FILE_PATH)
    load_into_db(phones_list)

    print("Load complete.")
    print(f"Total CSV rows read:   {stats['n_rows']}")
    print(f"Phones parsed:         {stats['n_phones']}")
    print(f"Rows with errors:      {stats['n_errors']}")


if __name__ == "__main__":
    main()
