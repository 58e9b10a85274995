from setuptools import setup

setup(
    name='pybedcompare',
    version='0.1.0',
    description='Summary statistics and multi-file comparison of BED interval files',
    author='PyBedCompare developers',
    install_requires=['pandas', 'numpy'],
    extras_require={
        'progress': ['rich', 'tqdm'],
        'test': ['pytest'],
        'docs': ['sphinx', 'myst-parser', 'furo'],
    },
    packages=['pybedcompare'],
    python_requires='>=3.10',
    zip_safe=False
)
