# setup.py
from setuptools import setup, find_packages
from pathlib import Path
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="tessbridge",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src", include=["tessbridge", "tessbridge.*"]),
    author="Phuoc Nguyen",
    description="OCR sessions, hOCR, PDF export and word boxes on top of the Tesseract C API.",
    long_description=long_description,
    long_description_content_type='text/markdown',
    python_requires=">=3.8",

    install_requires=[
        "PyMuPDF",
        "tqdm",
        "Pillow",
        "numpy",
        "python-slugify",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'tessbridge=tessbridge.cli:main',
        ],
    },
)
