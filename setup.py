from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_file = Path(__file__).parent / "README.md"
if readme_file.exists():
    with open(readme_file, "r", encoding="utf-8") as fh:
        long_description = fh.read()
else:
    long_description = "Signal/Background classification toolkit for neutrino event data"

# Read requirements
requirements_file = Path(__file__).parent / "requirements.txt"
if requirements_file.exists():
    with open(requirements_file, "r", encoding="utf-8") as fh:
        requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]
else:
    requirements = [
        "numpy>=1.19.0",
        "pandas>=1.3.0",
        "scikit-learn>=1.2.0",
        "xgboost>=1.5.0",
        "torch>=2.0.0",
        "uproot>=5.0.0",
        "awkward>=2.0.0",
        "h5py>=3.0.0",
        "matplotlib>=3.4.0",
        "tqdm>=4.62.0",
        "seaborn>=0.11.0",
        "scipy>=1.7.0",
        "joblib>=1.0.0",
        "pyyaml>=5.4",
    ]

setup(
    name="mva-tools",
    version="1.0.0",
    description="Classifier training, optimal cut selection and performance reports for neutrino interaction analyses",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Physics",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    license="MIT",
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "black>=21.0",
            "isort>=5.0",
            "flake8>=3.8",
            "mypy>=0.950",
        ],
        "notebooks": [
            "jupyter>=1.0",
            "ipywidgets>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mva-filter=mva_tools.scripts.filter_data:main",
            "mva-train=mva_tools.scripts.train_models:main",
            "mva-analyze=mva_tools.scripts.run_pipeline:main",
            "mva-apply=mva_tools.scripts.run_inference:main",
        ],
    },
    include_package_data=True,
    package_data={
        "mva_tools": [
            "configs/*.yaml",
        ],
    },
    zip_safe=False,
    keywords="particle physics, neutrino, machine learning, classification, ROOT, boosted decision trees, pytorch",
)
