#!/usr/bin/env python3
"""Load demo users and articles into the database. Idempotent."""

import json
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from werkzeug.security import generate_password_hash

from truthnode import create_app
from truthnode.enums import UserRole
from truthnode.extensions import db
from truthnode.models.article import Article
from truthnode.models.user import User
from truthnode.utils.clock import utcnow
from truthnode.utils.hashing import content_address

DEMO_PASSWORD = os.getenv('SEED_PASSWORD', 'password123')


def seed_users(users):
    """Create users. Skip existing by username."""
    added = 0
    skipped = 0
    for u in users:
        if User.query.filter_by(username=u['username']).first():
            skipped += 1
            continue

        role = UserRole(u.get('role', 'community'))
        user = User(
            username=u['username'],
            email=u['email'],
            name=u['name'],
            password_hash=generate_password_hash(DEMO_PASSWORD),
            role=role,
            bio=u.get('bio'),
            avatar=u.get('avatar'),
            ens_address=u.get('ens_address'),
            verified_at=utcnow() if role is not UserRole.COMMUNITY else None,
        )
        db.session.add(user)
        added += 1

    db.session.commit()
    print(f"Users: {added} added, {skipped} skipped (already exist)")


def seed_articles(articles):
    """Create articles. Skip existing by title."""
    added = 0
    skipped = 0
    for a in articles:
        if Article.query.filter_by(title=a['title']).first():
            skipped += 1
            continue

        author = User.query.filter_by(username=a['author']).first()
        if not author:
            print(f"  ! author {a['author']} missing, skipping {a['title']!r}")
            skipped += 1
            continue

        article = Article(
            title=a['title'],
            summary=a['summary'],
            content=a['content'],
            category=a['category'],
            image_url=a.get('image_url'),
            ipfs_hash=a.get('ipfs_hash') or content_address(a['content']),
            author_id=author.id,
            status=a.get('status', 'pending'),
            is_whistleblower=a.get('is_whistleblower', False),
        )
        db.session.add(article)
        added += 1

    db.session.commit()
    print(f"Articles: {added} added, {skipped} skipped (already exist)")


if __name__ == '__main__':
    app = create_app()
    seed_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'seed_data.json')

    with open(seed_path) as f:
        seed = json.load(f)

    with app.app_context():
        print("Seeding database...")
        db.create_all()
        seed_users(seed['users'])
        seed_articles(seed['articles'])
        print("Done.")
