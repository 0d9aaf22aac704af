"""Job tracker CLI.

Usage:
    python cli.py tracker list [--status interview] [--priority high] [--search berlin]
    python cli.py tracker add --company "Acme" --position "Engineer" [--status applied]
    python cli.py tracker status <id> offer
    python cli.py tracker delete <id>
    python cli.py tracker board
    python cli.py tracker recent [--limit 5]
    python cli.py tracker stats
    python cli.py tracker resume add --name "CV 2026" [--file cv.pdf] [--default]
    python cli.py tracker resume list
    python cli.py tracker letter add --name "Generic" [--file letter.pdf]
    python cli.py tracker letter list
    python cli.py tracker login --user u1 [--email me@example.com]
    python cli.py tracker logout
"""
import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from common.storage import FileBackend

from .auth import Authenticated, LocalAuthProvider
from .config import TrackerConfig, load_config
from .context import open_tracker
from .records import ApplicationStatus, Priority, utcnow
from .reporting import (
    filter_applications,
    kanban_columns,
    monthly_counts,
    recent_applications,
    status_counts,
    success_rate,
    summarize,
    upcoming_interviews,
)

COMMANDS = ['list', 'add', 'status', 'delete', 'board', 'recent', 'stats',
            'resume', 'letter', 'login', 'logout']


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Job Application Tracker')
    parser.add_argument('command', choices=COMMANDS)
    parser.add_argument('args', nargs='*',
                        help='<id> for delete, <id> <status> for status, add|list for resume/letter')
    parser.add_argument('--config', help='YAML config file')
    parser.add_argument('--status', dest='filter_status',
                        choices=[s.value for s in ApplicationStatus],
                        help='Status filter (list) or initial status (add)')
    parser.add_argument('--company', help='Company name')
    parser.add_argument('--position', help='Position title')
    parser.add_argument('--location', help='Location')
    parser.add_argument('--salary', help='Salary')
    parser.add_argument('--url', help='Job posting URL')
    parser.add_argument('--priority', choices=[p.value for p in Priority],
                        help='Priority filter (list) or priority (add)')
    parser.add_argument('--search', default='',
                        help='Search company, position, location and tags (list)')
    parser.add_argument('--limit', type=int, default=5, help='Number of entries (recent)')
    parser.add_argument('--name', help='Document name (resume, letter)')
    parser.add_argument('--file', default='', help='Document file name (resume, letter)')
    parser.add_argument('--default', action='store_true', help='Mark resume as default')
    parser.add_argument('--tag', action='append', default=[], help='Tag (repeatable)')
    parser.add_argument('--notes', default='')
    parser.add_argument('--user', help='User id (login)')
    parser.add_argument('--email', help='Email (login)')
    return parser


def _auth_for(config: TrackerConfig) -> tuple[FileBackend, LocalAuthProvider]:
    backend = FileBackend(config.local_storage.directory)
    auth = LocalAuthProvider(backend, session_key=f"{config.local_storage.key_prefix}_session")
    return backend, auth


def _print_applications(applications) -> None:
    if not applications:
        print('   (no applications)')
        return
    for app in applications:
        applied = app.date_applied.isoformat() if app.date_applied else '-'
        print(f'   {app.id[:8]}  {app.status.value:<16} {applied:<10}  '
              f'{app.company_name} · {app.position}')


def _print_board(applications) -> None:
    for status, column in kanban_columns(applications).items():
        print(f'   {status.value} ({len(column)})')
        for app in column:
            print(f'     - {app.id[:8]}  {app.company_name} · {app.position} [{app.priority.value}]')


def _documents(store, args: argparse.Namespace, mode: str) -> int:
    """resume/letter add|list. Resumes show which one is the default."""
    action = args.args[0] if args.args else 'list'
    if action not in ('add', 'list') or len(args.args) > 1:
        print(f'❌ Usage: {args.command} add|list')
        return 2
    is_resume = args.command == 'resume'
    label = 'resume' if is_resume else 'cover letter'

    if action == 'add':
        data = {'name': args.name, 'file_name': args.file, 'tags': args.tag}
        if is_resume:
            data['is_default'] = args.default
        try:
            doc = store.add_resume(data) if is_resume else store.add_cover_letter(data)
        except ValidationError as e:
            print(f'❌ Invalid {label}: {e.error_count()} error(s)')
            for err in e.errors():
                print(f"   {'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
            return 2
        print(f'✅ Added {label} {doc.id}: {doc.name}')
        return 0

    docs = store.resumes if is_resume else store.cover_letters
    default = store.default_resume if is_resume else None
    print(f"📄 {'Resumes' if is_resume else 'Cover letters'} ({mode}): {len(docs)}")
    if not docs:
        print(f'   (no {label}s)')
    for doc in sorted(docs, key=lambda d: d.created_at, reverse=True):
        line = f'   {doc.id[:8]}  {doc.name}'
        if doc.file_name:
            line += f' ({doc.file_name})'
        if default is not None and doc.id == default.id:
            line += '  ★ default'
        print(line)
    return 0


def _resolve_id(store, prefix: str):
    """Accept a full id or an unambiguous prefix (as printed by list)."""
    matches = [a for a in store.applications if a.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        print(f'❌ No application matching {prefix}')
    else:
        print(f'❌ {prefix} is ambiguous ({len(matches)} matches)')
    return None


async def run(args: argparse.Namespace, config: TrackerConfig) -> int:
    backend, auth = _auth_for(config)

    async with open_tracker(config, auth=auth, backend=backend) as tracker:
        store = tracker.store
        session = store.session
        mode = f'signed in as {session.user_id}' if isinstance(session, Authenticated) else 'local'

        if args.command == 'login':
            if not args.user:
                print('❌ --user is required')
                return 2
            await auth.sign_in(args.user, email=args.email)
            print(f'🔑 Signed in as {args.user} ({len(store.applications)} applications)')

        elif args.command == 'logout':
            await auth.sign_out()
            print(f'👋 Signed out ({len(store.applications)} local applications)')

        elif args.command == 'list':
            apps = filter_applications(
                store.applications,
                search=args.search,
                status=ApplicationStatus(args.filter_status) if args.filter_status else None,
                priority=Priority(args.priority) if args.priority else None,
            )
            print(f'📋 Applications ({mode}): {len(apps)}')
            _print_applications(sorted(apps, key=lambda a: a.created_at, reverse=True))

        elif args.command == 'board':
            print(f'🗂️  Board ({mode})')
            _print_board(store.applications)

        elif args.command == 'recent':
            recent = recent_applications(store.applications, limit=args.limit)
            print(f'🕒 Recent applications ({mode}): {len(recent)}')
            _print_applications(recent)

        elif args.command in ('resume', 'letter'):
            code = _documents(store, args, mode)
            if code:
                return code

        elif args.command == 'add':
            data = {
                'company_name': args.company,
                'position': args.position,
                'status': args.filter_status or ApplicationStatus.APPLIED.value,
                'location': args.location,
                'salary': args.salary,
                'job_url': args.url,
                'notes': args.notes,
                'tags': args.tag,
            }
            if args.priority:
                data['priority'] = args.priority
            try:
                app = store.add_application(data)
            except ValidationError as e:
                print(f'❌ Invalid application: {e.error_count()} error(s)')
                for err in e.errors():
                    print(f"   {'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
                return 2
            print(f'✅ Added {app.id}: {app.company_name} · {app.position}')

        elif args.command == 'status':
            if len(args.args) != 2:
                print('❌ Usage: status <id> <status>')
                return 2
            app = _resolve_id(store, args.args[0])
            if app is None:
                return 1
            try:
                updated = store.update_application(app.id, {'status': args.args[1]})
            except ValidationError:
                valid = ', '.join(s.value for s in ApplicationStatus)
                print(f'❌ Unknown status {args.args[1]!r} (valid: {valid})')
                return 2
            print(f'🔄 {updated.company_name}: {app.status.value} → {updated.status.value}')

        elif args.command == 'delete':
            if len(args.args) != 1:
                print('❌ Usage: delete <id>')
                return 2
            app = _resolve_id(store, args.args[0])
            if app is None:
                return 1
            store.delete_application(app.id)
            print(f'🗑️  Deleted {app.company_name} · {app.position}')

        elif args.command == 'stats':
            now = utcnow()
            summary = summarize(store.applications, now)
            print(f'📊 Pipeline ({mode})')
            print(f'   Total:         {summary.total}')
            print(f'   Active:        {summary.active}')
            print(f'   Interviews:    {summary.interviews}')
            print(f'   Offers:        {summary.offers}')
            print(f'   Response rate: {summary.response_rate}%')
            print(f'   Success rate:  {summary.success_rate}%')
            print(f'   Win rate:      {success_rate(store.applications)}% of concluded')
            print(f'   This month:    {summary.this_month} ({summary.monthly_growth:+d}% vs last month)')
            print('   By status:')
            for status, count in status_counts(store.applications).items():
                print(f'     {status.value:<16} {count}')
            print('   Last 6 months:')
            for month, count in monthly_counts(store.applications, now):
                print(f"     {month}  {'█' * count} {count}")
            upcoming = upcoming_interviews(store.applications, now)
            if upcoming:
                print('   Upcoming interviews:')
                for app in upcoming:
                    print(f'     {app.interview_date:%Y-%m-%d %H:%M}  {app.company_name}')

        failures = await store.flush()
        if failures:
            print(f'⚠️  {len(failures)} change(s) were not saved remotely; run list to reload')
            return 1
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    return asyncio.run(run(args, config))


if __name__ == '__main__':
    sys.exit(main())
