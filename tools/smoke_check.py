import sys
from datetime import date
from pathlib import Path

# Ensure project src is on sys.path
repo_root = Path(__file__).resolve().parents[1]
src_dir = repo_root / 'src'
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from Lessonbook.app_init import initialize_database  # noqa: E402
from Lessonbook.services import tuition_service  # noqa: E402

if __name__ == '__main__':
    print('Running smoke check: initialize_database()...')
    db_path = initialize_database()
    today = date.today()
    summary = tuition_service.get_tuition_summary(today.month, today.year, today=today)
    print(f'Database: {db_path}')
    print(f'Tuition {today.month}/{today.year}: {summary}')
    print('Smoke check completed.')
