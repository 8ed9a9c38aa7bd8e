"""assignhub：作业生命周期与教师评价引擎。"""

__version__ = "0.1.0"
