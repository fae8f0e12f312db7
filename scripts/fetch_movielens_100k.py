#!/usr/bin/env python3
import argparse
import os
import shutil
import urllib.request
import zipfile

MOVIELENS_100K_ZIP = "https://files.grouplens.org/datasets/movielens/ml-100k.zip"

# the seed script only reads these two files
REQUIRED_FILES = ("u.item", "u.genre")


def download(url: str, zip_path: str, force: bool) -> None:
    if force and os.path.exists(zip_path):
        os.remove(zip_path)

    if os.path.exists(zip_path):
        print(f"Archive already present: {zip_path}")
        return

    print(f"Downloading: {url}")
    urllib.request.urlretrieve(url, zip_path)
    print(f"Saved to: {zip_path}")


def is_extracted(extract_dir: str) -> bool:
    return all(os.path.exists(os.path.join(extract_dir, f)) for f in REQUIRED_FILES)


def main():
    ap = argparse.ArgumentParser(description="Download the MovieLens 100k catalog used to seed movies and genres")
    ap.add_argument("--out-dir", default="data/movielens", help="Where to extract dataset")
    ap.add_argument("--force", action="store_true", help="Re-download and re-extract")
    args = ap.parse_args()

    os.makedirs(args.out_dir, exist_ok=True)
    zip_path = os.path.join(args.out_dir, "ml-100k.zip")
    extract_dir = os.path.join(args.out_dir, "ml-100k")

    download(MOVIELENS_100K_ZIP, zip_path, args.force)

    if args.force and os.path.isdir(extract_dir):
        shutil.rmtree(extract_dir)

    if is_extracted(extract_dir):
        print(f"Already extracted: {extract_dir}")
        return

    print(f"Extracting to: {extract_dir}")
    with zipfile.ZipFile(zip_path, "r") as zf:
        zf.extractall(args.out_dir)
    print("Done.")


if __name__ == "__main__":
    main()
