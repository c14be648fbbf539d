"""Seed script to populate or reset a database with realistic problem data.

The target database is chosen the same way the API chooses it (DATABASE_MODE
and APP_ENV).

Usage:
    PYTHONPATH=backend/src uv run python backend/scripts/seed_data.py populate
    PYTHONPATH=backend/src uv run python backend/scripts/seed_data.py populate --force
    PYTHONPATH=backend/src uv run python backend/scripts/seed_data.py clear
"""

import argparse
import asyncio
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import DEV_USER_ID, get_or_create_dev_user
from core.config import get_settings
from core.database_mode import DatabaseMode
from db.session import create_database
from models import Category, Problem, User
from schemas.problem import ProblemCreate
from services.problem_service import create_problem

CLEAR_CONFIRMATION = 'CONFIRM DELETE'

# ---------------------------------------------------------------------------
# Problem data (days_ago is relative to the time the script runs)
# ---------------------------------------------------------------------------

PROBLEMS = [
    {
        'title': 'Two Sum',
        'url': 'https://leetcode.com/problems/two-sum/',
        'difficulty': 'EASY',
        'language_used': 'Python',
        'solution_notes': (
            'One pass with a dict from value to index. For each number, check whether '
            'target - num was already seen before storing the current number.'
        ),
        'what_went_wrong': 'First tried the O(n^2) double loop.',
        'trigger_keywords': 'pair, target sum, complement',
        'time_complexity': 'O(n)',
        'space_complexity': 'O(n)',
        'was_hard': False,
        'categories': ['Array', 'Hash Table'],
        'days_ago': 2,
    },
    {
        'title': 'Valid Parentheses',
        'url': 'https://leetcode.com/problems/valid-parentheses/',
        'difficulty': 'EASY',
        'language_used': 'Python',
        'solution_notes': 'Push opening brackets, pop and compare on closing brackets.',
        'what_went_wrong': '',
        'trigger_keywords': 'matching brackets, nesting',
        'time_complexity': 'O(n)',
        'space_complexity': 'O(n)',
        'was_hard': False,
        'categories': ['String', 'Stack'],
        'days_ago': 9,
    },
    {
        'title': 'Longest Substring Without Repeating Characters',
        'url': 'https://leetcode.com/problems/longest-substring-without-repeating-characters/',
        'difficulty': 'MEDIUM',
        'language_used': 'Python',
        'solution_notes': (
            'Sliding window with the last index of each character. Move the left edge '
            'past the previous occurrence, never backwards.'
        ),
        'what_went_wrong': 'Moved the left pointer backwards on "abba".',
        'trigger_keywords': 'longest substring, no repeats, window',
        'time_complexity': 'O(n)',
        'space_complexity': 'O(min(n, alphabet))',
        'was_hard': True,
        'categories': ['String', 'Sliding Window', 'Hash Table'],
        'days_ago': 16,
    },
    {
        'title': 'Merge Intervals',
        'url': 'https://leetcode.com/problems/merge-intervals/',
        'difficulty': 'MEDIUM',
        'language_used': 'TypeScript',
        'solution_notes': 'Sort by start, then extend the last merged interval or append.',
        'what_went_wrong': '',
        'trigger_keywords': 'overlapping intervals',
        'time_complexity': 'O(n log n)',
        'space_complexity': 'O(n)',
        'was_hard': False,
        'categories': ['Array', 'Sorting'],
        'days_ago': 31,
    },
    {
        'title': 'Number of Islands',
        'url': 'https://leetcode.com/problems/number-of-islands/',
        'difficulty': 'MEDIUM',
        'language_used': 'Python',
        'solution_notes': 'Flood fill each unvisited land cell with BFS and count the fills.',
        'what_went_wrong': 'Recursive DFS hit the recursion limit on a large grid.',
        'trigger_keywords': 'grid, connected components',
        'time_complexity': 'O(m * n)',
        'space_complexity': 'O(m * n)',
        'was_hard': False,
        'categories': ['Graph', 'Breadth-First Search', 'Matrix'],
        'days_ago': 45,
    },
    {
        'title': 'Coin Change',
        'url': 'https://leetcode.com/problems/coin-change/',
        'difficulty': 'MEDIUM',
        'language_used': 'Go',
        'solution_notes': 'Bottom-up DP over amounts; dp[a] = min(dp[a - coin] + 1).',
        'what_went_wrong': 'Greedy by largest coin fails for [1, 3, 4] and 6.',
        'trigger_keywords': 'fewest coins, unbounded knapsack',
        'time_complexity': 'O(amount * coins)',
        'space_complexity': 'O(amount)',
        'was_hard': True,
        'categories': ['Dynamic Programming', 'Array'],
        'days_ago': 63,
    },
    {
        'title': 'Binary Tree Level Order Traversal',
        'url': 'https://leetcode.com/problems/binary-tree-level-order-traversal/',
        'difficulty': 'MEDIUM',
        'language_used': 'Java',
        'solution_notes': 'BFS with a queue, draining one level at a time.',
        'what_went_wrong': '',
        'trigger_keywords': 'levels, breadth first',
        'time_complexity': 'O(n)',
        'space_complexity': 'O(n)',
        'was_hard': False,
        'categories': ['Tree', 'Breadth-First Search'],
        'days_ago': 88,
    },
    {
        'title': 'Median of Two Sorted Arrays',
        'url': 'https://leetcode.com/problems/median-of-two-sorted-arrays/',
        'difficulty': 'HARD',
        'language_used': 'Python',
        'solution_notes': (
            'Binary search the partition of the shorter array so that every element '
            'on the left is <= every element on the right.'
        ),
        'what_went_wrong': 'Off-by-one on the partition bounds; needed sentinels for empty sides.',
        'trigger_keywords': 'median, two sorted arrays, log(m+n)',
        'time_complexity': 'O(log(min(m, n)))',
        'space_complexity': 'O(1)',
        'was_hard': True,
        'categories': ['Array', 'Binary Search', 'Divide and Conquer'],
        'days_ago': 120,
    },
    {
        'title': 'Trapping Rain Water',
        'url': 'https://leetcode.com/problems/trapping-rain-water/',
        'difficulty': 'HARD',
        'language_used': 'Rust',
        'solution_notes': 'Two pointers tracking the max height seen from each side.',
        'what_went_wrong': '',
        'trigger_keywords': 'elevation map, water, two pointers',
        'time_complexity': 'O(n)',
        'space_complexity': 'O(1)',
        'was_hard': True,
        'categories': ['Array', 'Two Pointers', 'Stack'],
        'days_ago': 150,
    },
    {
        'title': 'Climbing Stairs',
        'url': 'https://leetcode.com/problems/climbing-stairs/',
        'difficulty': 'EASY',
        'language_used': 'Python',
        'solution_notes': 'Fibonacci with two rolling variables.',
        'what_went_wrong': '',
        'trigger_keywords': 'ways to reach, 1 or 2 steps',
        'time_complexity': 'O(n)',
        'space_complexity': 'O(1)',
        'was_hard': False,
        'categories': ['Dynamic Programming', 'Math'],
        'days_ago': 240,
    },
]


async def create_problems(session: AsyncSession, user: User) -> None:
    """Create the sample problems for the given user."""
    now = datetime.now(UTC)
    for data in PROBLEMS:
        fields = {key: value for key, value in data.items() if key != 'days_ago'}
        await create_problem(
            session,
            user.id,
            ProblemCreate(**fields, date_solved=now - timedelta(days=data['days_ago'])),
        )
    print(f'  Created {len(PROBLEMS)} problems')


async def clear_data(session: AsyncSession) -> None:
    """Delete all problems, categories and users."""
    problem_count = (await session.execute(select(func.count()).select_from(Problem))).scalar()
    category_count = (await session.execute(select(func.count()).select_from(Category))).scalar()
    user_count = (await session.execute(select(func.count()).select_from(User))).scalar()

    # Problems first; their category links go with them
    await session.execute(delete(Problem))
    await session.execute(delete(Category))
    await session.execute(delete(User))

    print(
        f'  Deleted {problem_count} problems, {category_count} categories, {user_count} users',
    )
    print('Clear complete.')


async def populate(force: bool = False) -> None:
    """Populate the database with seed data."""
    database, config = create_database(get_settings())

    async with database.session_factory() as session:
        try:
            user = await get_or_create_dev_user(session)
            print(f'  Using dev user: {user.id}')

            problem_count = (await session.execute(
                select(func.count()).select_from(Problem).where(Problem.user_id == user.id),
            )).scalar()

            if problem_count and problem_count > 0:
                if force:
                    print('Existing data found, clearing first (--force)...')
                    await clear_data(session)
                    await session.flush()
                    user = await get_or_create_dev_user(session)
                else:
                    print(
                        f'Data already exists ({problem_count} problems). '
                        f'Use --force to clear and re-seed.',
                    )
                    return

            print(f'Populating seed data ({config.mode} database)...')
            await create_problems(session, user)
            await session.commit()
            print('Seed data created successfully.')
        except Exception:
            await session.rollback()
            raise
        finally:
            await database.dispose()


async def clear() -> None:
    """Clear all data."""
    database, config = create_database(get_settings())

    async with database.session_factory() as session:
        try:
            print(f'Clearing all data from the {config.mode} database...')
            await clear_data(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await database.dispose()


def confirm_production_clear() -> bool:
    """Ask the operator to type the confirmation phrase before wiping production."""
    print(
        'WARNING: you are about to delete ALL users, problems and categories '
        'from the PRODUCTION database.',
    )
    answer = input(f'Type "{CLEAR_CONFIRMATION}" to continue: ')
    return answer.strip() == CLEAR_CONFIRMATION


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description='Seed or reset the database.')
    subparsers = parser.add_subparsers(dest='command', required=True)

    populate_parser = subparsers.add_parser('populate', help='Populate database with sample problems')
    populate_parser.add_argument(
        '--force', action='store_true',
        help='Clear existing data before populating (required against production)',
    )

    subparsers.add_parser('clear', help='Remove all users, problems and categories')

    args = parser.parse_args()

    settings = get_settings()
    in_production = settings.resolved_mode == DatabaseMode.PRODUCTION

    if args.command == 'populate':
        if in_production and not args.force:
            print(
                'ERROR: refusing to seed the production database.\n'
                'Pass --force if you really mean it.',
            )
            raise SystemExit(1)
        asyncio.run(populate(force=args.force))
    elif args.command == 'clear':
        if in_production and not confirm_production_clear():
            print('Aborted.')
            raise SystemExit(1)
        asyncio.run(clear())


if __name__ == '__main__':
    main()
