#!/usr/bin/env python3
"""
Build script for Python Lambda functions

Each directory under ``src/`` holding a ``lambda_function.py`` becomes
``build/<name>.zip`` containing the entry point and the ``lambda_kit``
package. Third-party dependencies are expected in a Lambda layer unless the
function directory ships its own requirements.txt.
"""
import os
import shutil
import subprocess
import sys
import zipfile
from pathlib import Path
from typing import List

PACKAGE_NAME = "lambda_kit"
ENTRY_POINT = "lambda_function.py"


def find_functions(src_dir: Path) -> List[Path]:
    """Function directories under ``src_dir``, sorted by name."""
    return sorted(
        d for d in src_dir.iterdir()
        if d.is_dir() and (d / ENTRY_POINT).exists()
    )


def build_function(function_dir: Path, src_dir: Path, build_dir: Path) -> Path:
    """Package one function and return the path of its zip archive."""
    function_name = function_dir.name
    zip_path = build_dir / f"{function_name}.zip"

    temp_dir = build_dir / f"temp_{function_name}"
    if temp_dir.exists():
        shutil.rmtree(temp_dir)
    temp_dir.mkdir(parents=True)

    try:
        ignore = shutil.ignore_patterns("__pycache__", "*.pyc")
        shutil.copytree(function_dir, temp_dir, dirs_exist_ok=True, ignore=ignore)
        shutil.copytree(src_dir / PACKAGE_NAME, temp_dir / PACKAGE_NAME, ignore=ignore)

        requirements_file = function_dir / "requirements.txt"
        if requirements_file.exists():
            print(f"Installing dependencies for {function_name}...")
            subprocess.run([
                sys.executable, "-m", "pip", "install",
                "-r", str(requirements_file),
                "-t", str(temp_dir),
            ], check=True)

        with zipfile.ZipFile(zip_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            for root, _, files in os.walk(temp_dir):
                for file in sorted(files):
                    file_path = Path(root) / file
                    zipf.write(file_path, file_path.relative_to(temp_dir))
    finally:
        shutil.rmtree(temp_dir)

    return zip_path


def main():
    """Main build function"""
    project_root = Path(__file__).parent.parent
    src_dir = project_root / "src"
    build_dir = project_root / "build"
    build_dir.mkdir(exist_ok=True)

    functions = find_functions(src_dir)
    print(f"Building Lambda functions: {[f.name for f in functions]}")

    for function_dir in functions:
        print(f"Building {function_dir.name}...")
        zip_path = build_function(function_dir, src_dir, build_dir)
        print(f"{zip_path.name} created ({zip_path.stat().st_size} bytes)")

    print("Build complete!")


if __name__ == "__main__":
    main()
