from setuptools import setup, find_namespace_packages
import logging
import datetime as dt
logger = logging.getLogger('gpsgrid.setup')
stream = logging.StreamHandler()
stream.setLevel(logging.INFO)
logger.setLevel(logging.INFO)
form = logging.Formatter('%(asctime)-15s %(name)-25s %(levelname)s - %(threadName)s %(message)s',
                         '%Y-%m-%d %H:%M:%S')
stream.setFormatter(form)
logger.addHandler(stream)
date = dt.date.today().strftime('%y%m%d')

setup(
    name='gpsgrid',
    version=f'0.0.post{date}',
    packages=find_namespace_packages(include=['gpsgrid', 'gpsgrid.*']),
    url='https://github.com/demiangomez/Parallel.GAMIT',
    license='',
    author='Demian Gomez',
    author_email='',
    description="Gridding of 2-D GPS velocities using the Green's functions of an elastic sheet",
    python_requires='>=3.8',
    install_requires=['numpy', 'scipy', 'numba', 'tqdm', 'netCDF4'],
    extras_require={'test': ['pytest']},
    scripts=['com/GpsGridder.py']
)
