from setuptools import setup

setup(
    name='mbpack',
    version='0.1.0',
    author='Tom MacWright',
    author_email='tom@macwright.org',
    packages=['mbpack'],
    scripts=['mb-pack'],
    url='https://github.com/mapbox/mbutil',
    license='BSD',
    description='Import and export tile directories to and from MBTiles',
    long_description=open('README.md').read(),
    extras_require={
        'test': ['pytest'],
    },
)
