from setuptools import setup, find_packages

setup(
    name="aurkit",
    version="0.1.0",
    description="Ferramentas de AUR: versões, .SRCINFO, resolução, upgrades e espelhos git.",
    author="Seu Nome",
    license="GPL-3.0",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.9",
    install_requires=[
        "rich>=13.0.0",
        "GitPython>=3.1.30",
        "requests>=2.28",
    ],
    extras_require={
        # libalpm bindings (pyalpm + pycman), Arch Linux only
        "alpm": ["pyalpm>=0.10"],
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "aurkit=aurkit.modules.cli:main",
        ],
    },
)
