"""Activity store package.

- records.py: Row-level records without a direct domain counterpart
- mapping.py: Row <-> entity conversions, one pair per entity kind
- repository.py: Generic repository and the lookup repositories
- activities.py: Activity aggregate repository (intermissions, tag links)
- migrations.py: Ordered schema migrations and the migration runner
- core.py: ActivityStore with connection management and units of work
"""

from pace_tracker.store.activities import ActivityRepository
from pace_tracker.store.core import ActivityStore, UnitOfWork
from pace_tracker.store.migrations import MIGRATIONS, Migration, MigrationRunner
from pace_tracker.store.repository import (
    CategoryRepository,
    DescriptionRepository,
    Repository,
    TagRepository,
)

__all__ = [
    # Main class
    "ActivityStore",
    "UnitOfWork",
    # Repositories
    "ActivityRepository",
    "CategoryRepository",
    "DescriptionRepository",
    "Repository",
    "TagRepository",
    # Migrations
    "MIGRATIONS",
    "Migration",
    "MigrationRunner",
]
