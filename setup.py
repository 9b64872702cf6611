from setuptools import setup, find_packages


with open("README.rst", "r") as fh:
    long_description = fh.read()


setup(
    name='longhorn-common',
    version='1.0.0',
    packages=find_packages(include=['longhorn', 'longhorn.*']),
    author='',
    author_email='maintainers@longhorn.io',
    description='Longhorn common library: disk configuration, names and labels',
    long_description=long_description,
    license='Apache-2.0',
    keywords='longhorn',
    url="https://github.com/longhorn/longhorn-manager",
    zip_safe=False,
    python_requires='>=3.8',
    install_requires=(
        'pyyaml',
    ),
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        'Intended Audience :: Developers',
        'Operating System :: POSIX :: Linux',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ]
)
