[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "legctrl"
version = "0.1.0"
description = "Control and estimation algorithms for robot joints and bodies: PID control, Mahony and quaternion EKF attitude estimation, a general Kalman filter and arm gravity compensation."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "robotics",
    "pid",
    "kalman-filter",
    "ekf",
    "mahony",
    "attitude-estimation",
    "gravity-compensation",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.setuptools.packages.find]
include = ["legctrl*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
