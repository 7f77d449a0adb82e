# -*- coding: utf-8 -*-
"""
配置模块

功能：
- 加载 YAML 配置（期望配额、导入列表、运行参数）
- 验证配置
"""
