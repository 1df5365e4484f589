"""Write the work slip CSV exports to disk - can be run as a cron job."""
import argparse
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlmodel import Session

from app import load_slips
from db import engine
from report import filter_slips, report_filename, slips_to_csv, totals_to_csv


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Export work slips to CSV")
    parser.add_argument("kind", choices=["records", "totals"], help="record table or category totals")
    parser.add_argument("--out-dir", default=os.getenv("REPORT_DIR", "."))
    parser.add_argument("--area")
    parser.add_argument("--office")
    parser.add_argument("--quarter", type=int, choices=[1, 2, 3, 4])
    parser.add_argument("--search")
    args = parser.parse_args(argv)

    with Session(engine) as session:
        slips = load_slips(session)

    if args.kind == "records":
        slips = filter_slips(slips, search=args.search, area=args.area, office=args.office, quarter=args.quarter)
        content, filename = slips_to_csv(slips), report_filename("Report")
    else:
        content, filename = totals_to_csv(slips), report_filename("Totals")

    path = os.path.join(args.out_dir, filename)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)

    print(f"SUCCESS: wrote {len(slips)} slips to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
