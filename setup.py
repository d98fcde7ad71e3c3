"""
API Metrics Monitoring 安装配置

包含两个包：
- metric_agent: 端点轮询与上报代理
- metric_aggregator: 指标聚合与 API 服务
"""

from setuptools import setup, find_packages

setup(
    name="api-metrics-monitoring",
    version="1.0.0",
    description="端点指标采集代理与聚合服务",
    author="AI-A",
    python_requires=">=3.8",
    packages=find_packages(include=["metric_agent", "metric_agent.*", "metric_aggregator", "metric_aggregator.*"]),
    install_requires=[
        "fastapi>=0.104.0",
        "uvicorn[standard]>=0.24.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "PyYAML>=6.0",
        "httpx>=0.25.0",
        "PyJWT>=2.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "metric-agent=metric_agent.__main__:main",
            "metric-aggregator=metric_aggregator.main:cli",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
