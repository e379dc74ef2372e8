from setuptools import setup


setup(
    name="waste-ledger",
    version="0.3.0",
    description="Append extracted waste-movement records to Excel waste ledgers without duplicating rows",
    packages=["waste_ledger"],
    python_requires=">=3.9",
    install_requires=[
        "openpyxl",
        "chardet",
        "pandas",
        "streamlit",
    ],
    entry_points={
        "console_scripts": [
            "waste-ledger=waste_ledger.cli:main",
        ]
    },
)
