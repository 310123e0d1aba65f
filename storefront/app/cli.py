from __future__ import annotations

import click
from flask import Blueprint
from werkzeug.security import generate_password_hash

from storefront.app.extensions import db
from storefront.app.models import Account, Product

cli_bp = Blueprint("cli", __name__, cli_group=None)


@cli_bp.cli.command("init-db")
def init_db() -> None:
    """Create tables."""
    db.create_all()
    click.echo("DB initialized (tables created).")


@cli_bp.cli.command("seed")
@click.option("--admin-password", default="Admin123!", show_default=True)
def seed_data(admin_password: str) -> None:
    """Seed minimal dev data.

    Safe to run multiple times; it will no-op if data exists.
    """
    db.create_all()

    if not Account.query.filter_by(email="admin@example.com").first():
        db.session.add(
            Account(
                email="admin@example.com",
                password_hash=generate_password_hash(admin_password),
                display_name="Store Admin",
                role="admin",
            )
        )

    if not Account.query.filter_by(email="user@example.com").first():
        db.session.add(
            Account(
                email="user@example.com",
                password_hash=generate_password_hash("Password123!"),
                display_name="Demo User",
                role="user",
            )
        )

    if Product.query.count() == 0:
        db.session.add_all([
            Product(name="Linen Shirt", description="Breathable summer shirt.", category="Clothing", price_cents=3999),
            Product(name="Canvas Sneakers", description="Everyday low-tops.", category="Shoes", price_cents=5499),
            Product(name="Leather Belt", description="Full-grain, brass buckle.", category="Accessories", price_cents=2450),
            Product(name="Wool Scarf", description="Merino, one size.", category="Accessories", price_cents=1999),
            Product(name="Denim Jacket", description="Classic trucker cut.", category="Clothing", price_cents=7900),
        ])

    db.session.commit()
    click.echo("Seed complete. Admin: admin@example.com / " + admin_password)
