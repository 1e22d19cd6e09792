from setuptools import find_packages, setup
import os
from glob import glob

package_name = 'sensor_calibration'

setup(
    name=package_name,
    version='1.0.0',
    packages=find_packages(exclude=['test']),
    data_files=[
        ('share/ament_index/resource_index/packages',
            ['resource/' + package_name]),
        ('share/' + package_name, ['package.xml']),
        (os.path.join('share', package_name, 'launch'), glob('launch/*.py')),
        (os.path.join('share', package_name, 'config'), glob('config/*.yaml')),
    ],
    install_requires=[
        'setuptools',
        'numpy',
        'PyYAML',
        'rich',
    ],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
    maintainer='Nitish',
    maintainer_email='nitish@example.com',
    description='Piecewise-linear calibration of streamed sensor readings with cyclic output support',
    license='MIT',
    entry_points={
        'console_scripts': [
            'calibration_node = sensor_calibration.calibration_node:main',
            'calibration_cli = sensor_calibration.cli:main',
        ],
    },
)
