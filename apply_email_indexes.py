from app.database import engine
from sqlalchemy import text

# Index sur lower(email) : les recherches anti-doublon passent par l'email normalisé
STATEMENTS = [
    ("clients lower(email)",
     "CREATE INDEX IF NOT EXISTS idx_clients_email_lower ON clients (lower(email))"),
    ("clients lower(email) + status",
     "CREATE INDEX IF NOT EXISTS idx_clients_email_lower_status ON clients (lower(email), status)"),
    ("leads lower(email) unique",
     "CREATE UNIQUE INDEX IF NOT EXISTS idx_leads_email_lower ON leads (lower(email))"),
]


def apply_email_indexes():
    print("🔧 APPLYING EMAIL INDEXES...")
    with engine.connect() as conn:
        for i, (label, sql) in enumerate(STATEMENTS, start=1):
            try:
                conn.execute(text(sql))
                conn.commit()
                print(f"✅ {i}. {label}")
            except Exception as e:
                conn.rollback()
                print(f"⚠️ {i}. {label}: {e}")

        rows = conn.execute(text(
            "SELECT tablename, indexname FROM pg_indexes "
            "WHERE tablename IN ('clients', 'leads') ORDER BY tablename, indexname"
        )).fetchall()
        print("\n🔍 Indexes:")
        for table, index in rows:
            print(f"   {table}.{index}")


if __name__ == "__main__":
    apply_email_indexes()
