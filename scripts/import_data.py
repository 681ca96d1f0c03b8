import sys
from pathlib import Path

from recipi import crud
from recipi.db import SessionLocal, init_db
from recipi.recipes import import_recipes, load_recipes


def main():
    if len(sys.argv) != 2:
        print('usage: python scripts/import_data.py OWNER_USERNAME')
        return
    init_db()
    p = Path(__file__).resolve().parents[1] / 'data' / 'recipes.json'
    if not p.exists():
        print('data/recipes.json not found')
        return
    db = SessionLocal()
    try:
        owner = crud.get_user_by_username(db, sys.argv[1])
        if owner is None:
            print(f'user {sys.argv[1]!r} not found; register it first')
            return
        added = import_recipes(db, owner, load_recipes(p))
    finally:
        db.close()
    print(f'Imported {added} recipes')


if __name__ == '__main__':
    main()
