"""Rewrite legacy leave-type spellings to their canonical names.

Older ledgers were written with ``annual`` (and a few free-text variants)
where the engine now uses ``casual``. Reads already fold these aliases, so
this script is only needed to make the stored data match what the API
returns:

  - ``leave_ledgers.balances``: alias keys are merged into the canonical
    key (quota of the canonical key wins, ``taken`` is summed).
  - ``leave_log_entries.leave_type``: each value is replaced by its
    canonical name.

Rows with a type that cannot be resolved are reported and left as-is.
Bumps ``version`` on every ledger it rewrites so in-flight writers retry.

Usage:
    python -m migration.normalize_leave_types [--dry-run]
"""

import argparse
import json
import uuid
from typing import Dict, Tuple

from migration.config import get_pg_conn

from leavetracker.common.constants import LeaveType
from leavetracker.leave.ledger import LeaveLedger
from leavetracker.leave.models import LeaveLedgerRecord


def _normalize_balances(employee_id: str, balances: dict) -> dict:
    ledger = LeaveLedger(employee_id=uuid.UUID(employee_id), balances=balances)
    return LeaveLedgerRecord.serialize_balances(ledger)


def normalize_ledgers(pg, *, dry_run: bool = False) -> Tuple[int, int]:
    """Fold alias keys in every ledger's balances. Returns (rewritten, unmapped)."""
    cur = pg.cursor()
    cur.execute("SELECT employee_id, balances FROM leave_ledgers")

    rewritten = 0
    unmapped = 0
    for employee_id, balances in cur.fetchall():
        if isinstance(balances, str):
            balances = json.loads(balances)
        try:
            normalized = _normalize_balances(str(employee_id), balances or {})
        except ValueError as exc:
            unmapped += 1
            print(f"  ⚠ Ledger {employee_id}: {exc}")
            continue
        if normalized == balances:
            continue

        rewritten += 1
        print(f"  ✓ Ledger {employee_id}: {sorted(balances)} → {sorted(normalized)}")
        if not dry_run:
            cur.execute(
                """UPDATE leave_ledgers
                   SET balances = %s, version = version + 1, updated_at = NOW()
                   WHERE employee_id = %s""",
                (json.dumps(normalized), str(employee_id)),
            )
    return rewritten, unmapped


def normalize_log_entries(pg, *, dry_run: bool = False) -> Tuple[int, int]:
    """Replace alias leave types in the allocation log. Returns (rewritten, unmapped)."""
    cur = pg.cursor()
    cur.execute("SELECT DISTINCT leave_type FROM leave_log_entries")

    mapping: Dict[str, str] = {}
    unmapped = 0
    for (raw,) in cur.fetchall():
        try:
            canonical = LeaveType.parse(raw).value
        except ValueError:
            unmapped += 1
            print(f"  ⚠ Unmapped leave type in log: '{raw}'")
            continue
        if canonical != raw:
            mapping[raw] = canonical

    rewritten = 0
    for raw, canonical in mapping.items():
        cur.execute(
            "SELECT COUNT(*) FROM leave_log_entries WHERE leave_type = %s", (raw,),
        )
        count = cur.fetchone()[0]
        rewritten += count
        print(f"  ✓ Log entries '{raw}' → '{canonical}': {count}")
        if not dry_run:
            cur.execute(
                "UPDATE leave_log_entries SET leave_type = %s WHERE leave_type = %s",
                (canonical, raw),
            )
    return rewritten, unmapped


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--dry-run", action="store_true", help="Report changes without writing")
    args = parser.parse_args()

    pg = get_pg_conn()
    try:
        print("Normalizing leave ledgers...")
        ledgers, bad_ledgers = normalize_ledgers(pg, dry_run=args.dry_run)
        print("Normalizing leave log entries...")
        entries, bad_types = normalize_log_entries(pg, dry_run=args.dry_run)
        if args.dry_run:
            pg.rollback()
        else:
            pg.commit()
    except Exception:
        pg.rollback()
        raise
    finally:
        pg.close()

    mode = "would rewrite" if args.dry_run else "rewrote"
    print(
        f"Done: {mode} {ledgers} ledgers and {entries} log entries "
        f"({bad_ledgers} ledgers, {bad_types} leave types unmapped)."
    )


if __name__ == "__main__":
    main()
