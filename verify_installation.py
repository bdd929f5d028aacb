#!/usr/bin/env python3
"""
Verify installation of all dependencies
"""

import sys
from pathlib import Path

CORE_DEPENDENCIES = [
    ("numpy", "numpy"),
    ("scipy", "scipy"),
    ("cv2", "opencv-python"),
    ("yaml", "pyyaml"),
    ("omegaconf", "omegaconf"),
    ("rich", "rich"),
    ("plyfile", "plyfile"),
    ("tqdm", "tqdm"),
]


def check_import(module_name, package_name=None, optional=False):
    """Check if a module can be imported"""
    if package_name is None:
        package_name = module_name

    try:
        __import__(module_name)
        print(f"✓ {package_name}: Installed")
        return True
    except ImportError as e:
        if optional:
            print(f"⚠ {package_name}: Not installed (optional)")
        else:
            print(f"✗ {package_name}: NOT INSTALLED - {e}")
        return False


def check_file_exists(filepath, description):
    """Check if a file exists"""
    path = Path(filepath)
    if path.exists():
        print(f"✓ {description}: Found at {filepath}")
        return True
    else:
        print(f"⚠ {description}: Not found at {filepath}")
        return False


def main():
    """Run all checks"""
    print("=" * 80)
    print("  VERIFYING OBJECT RECONSTRUCTION INSTALLATION")
    print("=" * 80)
    print()

    all_ok = True

    print("Core Dependencies:")
    print("-" * 80)
    for module_name, package_name in CORE_DEPENDENCIES:
        all_ok &= check_import(module_name, package_name)
    print()

    print("Test Tooling:")
    print("-" * 80)
    check_import("pytest", optional=True)
    print()

    print("Project Structure:")
    print("-" * 80)
    root = Path(__file__).parent
    check_file_exists(root / "config" / "reconstruction_config.yaml", "Configuration file")
    all_ok &= check_import("recon_utils", "Utils module")
    all_ok &= check_import("object_recon", "Reconstruction engine")
    print()

    print("=" * 80)
    if all_ok:
        print("  ✓ ALL CORE DEPENDENCIES INSTALLED")
        print("  You can now run: object-recon-replay --session <dir>")
    else:
        print("  ✗ SOME DEPENDENCIES ARE MISSING")
        print("  Install with: pip install -e .[test]")
    print("=" * 80)
    print()

    return 0 if all_ok else 1


if __name__ == "__main__":
    sys.exit(main())
