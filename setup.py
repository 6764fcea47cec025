from setuptools import setup


setup(
    name = 'compactbases',
    version = '0.1.0',
    description = 'Compact discretization bases (finite differences, FE-DVR, B-splines) on 1D intervals',
    long_description = 'compactbases provides finite-difference, FE-DVR and B-spline bases for '
                       'spectral and pseudo-spectral solvers on 1D intervals, together with '
                       'their quadrature rules, overlap and derivative matrices and densities.',

    classifiers=[
        'Programming Language :: Python :: 3',
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Mathematics',
        'Topic :: Scientific/Engineering :: Physics',
    ],
    packages = ['compactbases'],

    python_requires = '>=3.6',
    install_requires = [
        'numpy>=1.11',
        'scipy>=1.0',
    ],
    extras_require = {
        'test': ['pytest'],
    },
)
