#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from app.core.config import DEV_BOOTSTRAP_ALLOW, IS_DEV  # noqa: E402
from app.core.database import SessionLocal, engine  # noqa: E402
from app.services.admin_bootstrap import (  # noqa: E402
    ensure_required_tables,
    get_or_create_tenant,
    upsert_admin_user,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cria tenant e admin do cardápio digital.")
    parser.add_argument("--tenant-slug", required=True, help="Slug do tenant (criado se não existir)")
    parser.add_argument("--tenant-name", help="Nome da empresa para um tenant novo")
    parser.add_argument("--email", required=True, help="Email do admin")
    parser.add_argument("--password", help="Senha do admin")
    parser.add_argument("--name", required=True, help="Nome do admin")
    parser.add_argument("--role", default="owner", help="owner | admin")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Permite executar sem DEV_BOOTSTRAP_ALLOW=1",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if not DEV_BOOTSTRAP_ALLOW and not args.force:
        print("Bootstrap desabilitado. Defina DEV_BOOTSTRAP_ALLOW=1 ou use --force.")
        return 1

    try:
        ensure_required_tables(engine)
    except RuntimeError as exc:
        print(str(exc))
        return 1

    db = SessionLocal()
    try:
        tenant, _ = get_or_create_tenant(db, slug=args.tenant_slug, name=args.tenant_name)
        admin, created = upsert_admin_user(
            db,
            tenant_id=tenant.id,
            email=args.email,
            name=args.name,
            role=args.role.strip().lower(),
            password=args.password,
        )
        tenant_label = f"{tenant.slug} ({tenant.id})"
        admin_email = admin.email
    except ValueError as exc:
        print(str(exc))
        return 1
    finally:
        db.close()

    action = "created" if created else "updated"
    print(f"Admin {action}: tenant={tenant_label} email={admin_email}")
    if IS_DEV:
        password_info = args.password if args.password else "<mantida>"
        print(f"Resumo DEV -> Tenant: {tenant_label} | Email: {admin_email} | Senha: {password_info}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
