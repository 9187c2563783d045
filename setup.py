from setuptools import setup

setup(
    name="strudel-of-lilypond",
    version="0.1.0",
    packages=[
        "strudel_of_lilypond",
        "strudel_of_lilypond.lilyparser",
        "strudel_of_lilypond.sequencer",
    ],
    url="",
    license="BSD-3-Clause",
    author="",
    author_email="",
    description="Converts LilyPond scores into Strudel live-coding patterns",
    python_requires=">=3.7",
    install_requires=[
        "click",
        "ruamel.yaml",
        "more-itertools",
        "pygtrie>=2.4",
    ],
    extras_require={
        "test": ["pytest", "pytest-mock"],
    },
    entry_points={
        "console_scripts": [
            "strudel-of-lilypond=strudel_of_lilypond.cli:main",
            "strudel-sequence=strudel_of_lilypond.cli:sequence_main",
        ],
    },
)
