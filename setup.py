#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Autosteer Core 安装脚本

安装方法:
    # 可编辑安装 (推荐开发时使用)
    pip install -e .

    # 带测试依赖
    pip install -e .[test]
"""

from setuptools import setup, find_packages

setup(
    name='autosteer-core',
    version='1.0.0',
    author='Autosteer Core Team',
    description='农机自动驾驶导航核心: Pure Pursuit / Stanley 路径跟踪与田块几何',

    # 自动查找包
    packages=find_packages(include=['autosteer_core', 'autosteer_core.*']),

    # 依赖
    install_requires=[
        'numpy>=1.20.0',
        'scipy>=1.7.0',
        'PyYAML>=5.4.0',
        'shapely>=2.0',
    ],

    extras_require={
        'test': ['pytest'],
    },

    # Python 版本要求
    python_requires='>=3.8',

    include_package_data=True,
    zip_safe=False,
)
