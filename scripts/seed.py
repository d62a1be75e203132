"""Database seeder for local development.

Creates one account per role, a couple of groups and categories, a tag
set, and posts at every read permission level.  A share of the posts is
stored as legacy HTML so ``scripts/migrate_posts.py`` has work to do.
"""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta

from app.database import engine, async_session, Base
from app.models import Category, Comment, Group, Post, PostType, Tag, User
from app.permissions import Role

TAGS = ["python", "fastapi", "postgresql", "docker", "testing", "travel",
        "cooking", "books", "security", "devops"]

# group label -> category labels
TAXONOMY = {
    "Dev": ["Backend", "Infra"],
    "Life": ["Diary", "Reviews"],
}

READ_PERMISSIONS = [None, None, Role.USER, Role.ADMIN, Role.OWNER]

LEGACY_HTML = (
    "<h2>Post {i}</h2>"
    "<p>Notes on <strong>{tag}</strong> with a <a href=\"https://example.com/{i}\">link</a>.</p>"
    "<ul><li>first point</li><li>second point</li></ul>"
    "<pre data-language=\"python\"><code>print(&quot;hello {i}&quot;)</code></pre>"
)

STRUCTURED_JSON = (
    '[{{"id":"seed-{i}","type":"paragraph","props":{{}},'
    '"content":[{{"type":"text","text":"Structured post {i}","styles":{{}}}}],"children":[]}}]'
)


async def seed(small: bool = False):
    num_posts = 20 if small else 500
    legacy_ratio = 0.5

    print(f"Seeding: 3 users, {num_posts} posts")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        users = []
        for role in Role:
            user = User(
                username=f"{role.value}_account",
                email=f"{role.value}@example.com",
                nickname=role.value.title(),
                role=role,
            )
            session.add(user)
            users.append(user)

        categories = []
        for group_label, category_labels in TAXONOMY.items():
            group = Group(label=group_label)
            session.add(group)
            for label in category_labels:
                category = Category(label=label, group=group)
                session.add(category)
                categories.append((category, group_label))

        tags = [Tag(title=title) for title in TAGS]
        session.add_all(tags)
        await session.flush()
        print(f"  Created {len(users)} users, {len(categories)} categories, {len(tags)} tags")

        legacy_count = 0
        for i in range(num_posts):
            category, group_label = random.choice(categories)
            author = random.choice(users)
            post_tags = random.sample(tags, k=random.randint(1, 3))
            is_legacy = random.random() < legacy_ratio
            legacy_count += is_legacy
            created = datetime.now(timezone.utc) - timedelta(days=random.randint(0, 365))
            post = Post(
                title=f"Post {i}: about {post_tags[0].title}",
                content=(
                    LEGACY_HTML.format(i=i, tag=post_tags[0].title)
                    if is_legacy
                    else STRUCTURED_JSON.format(i=i)
                ),
                preview_text=f"Preview of post {i}",
                type=PostType.LIFE if group_label == "Life" else PostType.DEV,
                read_permission=random.choice(READ_PERMISSIONS),
                likes=random.randint(0, 50),
                view=random.randint(0, 1000),
                created_at=created,
                author_id=author.id,
                category_id=category.id,
            )
            post.tags.extend(post_tags)
            session.add(post)
            await session.flush()

            for _ in range(random.randint(0, 2)):
                session.add(Comment(
                    content=f"Comment on post {i}",
                    post_id=post.id,
                    author_id=random.choice(users).id,
                ))

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Posts: {num_posts} ({legacy_count} legacy HTML)")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (20 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
