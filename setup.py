from setuptools import setup, find_packages

setup(
    name='PKMSave',
    version='0.1',
    zip_safe=False,
    packages=find_packages(),
    package_data={
        'pkmsave': ['data/csv/*.csv']
    },
    install_requires=[
        'construct>=2.10',
        'camel',
    ],
    extras_require={
        'tests': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'pkmsave = pkmsave.main:setuptools_entry',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.12",
    ]
)
