#!/usr/bin/env python3
"""Check the journal prompt tables exist using the Supabase client."""
import sys
from pathlib import Path

sys.path.insert(0, '.')

from app.db.supabase_client import get_supabase

MIGRATION_FILE = Path(__file__).parent / "migrations" / "0001_journal_prompts.sql"
REQUIRED_TABLES = {
    "journal_prompts": "id, prompt_type, prompt_category, prompt_metadata, is_active",
    "llm_usage_log": "id, workflow, tokens_input",
    "profiles": "user_id, mentorship_style",
    "journal_entries": "user_id, entry_date, plain_text, is_active",
}


def run_migration():
    supabase = get_supabase()
    missing = []

    print("🚀 Checking journal prompt schema")
    for table, columns in REQUIRED_TABLES.items():
        try:
            print(f"🔍 Checking {table}...")
            supabase.table(table).select(columns).limit(1).execute()
            print(f"✅ {table} ok")
        except Exception as e:
            print(f"❌ {table}: {e}")
            missing.append(table)

    if missing:
        print("💡 Run this SQL in your Supabase SQL editor:")
        print(MIGRATION_FILE.read_text())
        sys.exit(1)


if __name__ == "__main__":
    run_migration()
