from __future__ import annotations

import argparse
import re
from pathlib import Path

import qrcode

from homecook.config import Settings
from homecook.db import Database
from homecook.models import Role, User

DEFAULT_OUT_DIR = Path(__file__).resolve().parents[1] / "qrcodes"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def profile_url(base_url: str, cook_id: str) -> str:
    return f"{base_url.rstrip('/')}/cooks/{cook_id}"


def file_stem(name: str, cook_id: str) -> str:
    slug = _SLUG_RE.sub("-", (name or "").lower()).strip("-") or "cook"
    return f"{slug}__{cook_id[:8]}"


def main(argv: list[str] | None = None) -> int:
    settings = Settings()

    parser = argparse.ArgumentParser(description="Write one QR code per cook linking to their profile page.")
    parser.add_argument("--base-url", default=settings.public_base_url)
    parser.add_argument("--out", type=Path, default=DEFAULT_OUT_DIR)
    args = parser.parse_args(argv)

    database = Database(settings.database_url)
    db = database.session()
    try:
        cooks = db.query(User).filter(User.role == Role.COOK).order_by(User.name).all()
        if not cooks:
            raise SystemExit(f"No cooks found in {settings.database_url}")

        args.out.mkdir(parents=True, exist_ok=True)
        made = 0
        for c in cooks:
            url = profile_url(args.base_url, c.id)
            img = qrcode.make(url)

            out_path = args.out / f"{file_stem(c.name, c.id)}.png"
            img.save(out_path)

            print(f"OK  {c.name}  ->  {out_path}  ({url})")
            made += 1
    finally:
        db.close()
        database.dispose()

    print(f"\nDone. Generated {made} QR codes in: {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
