from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Sequence

from .config import DEFAULT_LOG_LEVEL
from .errors import AreaMomentsError
from .logging_config import setup_logging
from .mesh import PolyDataFaceSource, load_mesh
from .selection import SelectionEntry, SelectionStatus, SelectionStore, name_faces

logger = logging.getLogger(__name__)

# (label, field, power of the length unit)
REPORT_LAYOUT = (
    ("Area", (("A", "area", 2), ("Perimeter", "perimeter", 1))),
    ("Centroid", (("Cx", "cx", 1), ("Cy", "cy", 1))),
    ("First moments", (("Qx", "qx", 3), ("Qy", "qy", 3))),
    ("Moments about origin", (("Ixx", "ixx_origin", 4), ("Iyy", "iyy_origin", 4),
                              ("Ixy", "ixy_origin", 4), ("J", "j_origin", 4))),
    ("Moments about centroid", (("Ix", "ix", 4), ("Iy", "iy", 4), ("Ixy", "ixy", 4), ("J", "j", 4))),
    ("Principal moments", (("Imin", "imin", 4), ("Imax", "imax", 4))),
    ("Radii of gyration", (("Rx", "rx", 1), ("Ry", "ry", 1), ("Rz", "rz", 1))),
    ("Section moduli", (("Sx", "sx", 3), ("Sy", "sy", 3))),
)


def format_entry(entry: SelectionEntry, digits: int = 6) -> str:
    lines = [entry.name]
    if entry.status is SelectionStatus.INVALID:
        lines.append(f"  invalid selection: {entry.error}")
        return "\n".join(lines)
    if entry.status is SelectionStatus.PENDING or entry.result is None:
        lines.append("  not computed")
        return "\n".join(lines)

    r = entry.result
    if r.is_empty:
        lines.append("  no measurable area")
        return "\n".join(lines)
    for title, rows in REPORT_LAYOUT:
        lines.append(f"  {title}")
        for label, field, power in rows:
            unit = "u" if power == 1 else f"u^{power}"
            lines.append(f"    {label:<10}{getattr(r, field):.{digits}g} {unit}")
    lines.append(f"    {'theta':<10}{r.theta_deg:.{digits}g} deg")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="areamoments",
        description="Section properties (area moments of inertia) of planar triangulated faces.",
    )
    p.add_argument("-v", "--verbose", action="count", default=0, help="More log output (-vv for debug).")
    p.add_argument("--log-file", default=None, help="Also write the log to this file.")
    sub = p.add_subparsers(dest="cmd", required=False)

    c = sub.add_parser("measure", help="Compute section properties of a face mesh file.")
    c.add_argument("input", help="Input mesh path (STL, PLY, VTK, ...)")
    c.add_argument("--split", action="store_true", help="Treat each connected region as a separate face.")
    c.add_argument("--normal", nargs=3, type=float, metavar=("NX", "NY", "NZ"), default=None,
                   help="Face plane normal to project onto (default: normal of the first triangle).")
    c.add_argument("--json", action="store_true", help="Print results as JSON.")
    c.add_argument("--digits", type=int, default=6, help="Significant digits in the text report.")

    return p


def _log_level(verbose: int):
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return DEFAULT_LOG_LEVEL


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(_log_level(args.verbose), args.log_file)

    if args.cmd is None:
        parser.print_help()
        return 1

    if args.cmd == "measure":
        try:
            mesh = load_mesh(args.input)
            source = PolyDataFaceSource(mesh, name=os.path.basename(args.input), split=args.split)
            store = SelectionStore()
            store.select(name_faces(source, source.faces()))
            store.calculate_pending(source, normal=args.normal)
        except (AreaMomentsError, OSError) as e:
            logger.error("%s", e)
            print(f"areamoments: error: {e}", file=sys.stderr)
            return 2

        entries = store.snapshot()
        if args.json:
            payload = [
                {
                    "name": e.name,
                    "status": e.status.value,
                    "error": e.error,
                    "result": e.result.as_dict() if e.result is not None else None,
                }
                for e in entries
            ]
            print(json.dumps(payload, indent=2))
        else:
            print("\n\n".join(format_entry(e, args.digits) for e in entries))
        return 0 if all(e.status is SelectionStatus.COMPUTED for e in entries) else 2

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
