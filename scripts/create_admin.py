#!/usr/bin/env python3
import argparse
import getpass

from backend.app.db import connect, init_db
from backend.app.security import ROLE_ADMIN, hash_password


def main():
    ap = argparse.ArgumentParser(description="Create an admin account, or promote an existing user to admin")
    ap.add_argument("--username", required=True)
    ap.add_argument("--email", help="Required when the user does not exist yet")
    ap.add_argument("--password", help="Prompted for when omitted and the user is new")
    args = ap.parse_args()

    conn = connect()
    init_db(conn)

    row = conn.execute("SELECT user_id FROM users WHERE username = ?", (args.username,)).fetchone()
    if row:
        conn.execute("UPDATE users SET role = ? WHERE user_id = ?", (ROLE_ADMIN, row["user_id"]))
        conn.commit()
        conn.close()
        print(f"Promoted '{args.username}' (id={row['user_id']}) to admin.")
        return

    if not args.email:
        raise SystemExit("User not found; --email is required to create it.")

    password = args.password or getpass.getpass("Password: ")
    if len(password) < 6:
        raise SystemExit("Password must be at least 6 characters.")

    cur = conn.execute(
        "INSERT INTO users(username, email, hashed_password, role) VALUES(?,?,?,?)",
        (args.username, args.email, hash_password(password), ROLE_ADMIN),
    )
    conn.commit()
    conn.close()
    print(f"Created admin '{args.username}' (id={cur.lastrowid}).")


if __name__ == "__main__":
    main()
