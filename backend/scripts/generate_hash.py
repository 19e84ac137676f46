# -*- coding: utf-8 -*-
"""
密码哈希生成工具
为手工编写的 users/{username}/profile.json 生成 HashedPassword

运行: python scripts/generate_hash.py [--rounds 10]
"""

import argparse
import getpass
import os
import sys

# 添加 backend 目录到路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import bcrypt

from core.config import get_settings


def generate_hash(password: str, rounds: int) -> str:
    """生成 bcrypt 哈希（密码超过 72 字节部分被忽略）"""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8")[:72], salt).decode("utf-8")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="生成 bcrypt 密码哈希")
    parser.add_argument("--rounds", type=int, default=None, help="bcrypt 工作因子（默认读取配置）")
    args = parser.parse_args(argv)

    rounds = args.rounds or get_settings().bcrypt_rounds

    print("=" * 60)
    print("密码哈希生成工具")
    print("=" * 60)

    password = getpass.getpass("请输入密码: ")
    if not password:
        print("密码不能为空")
        return 1
    if password != getpass.getpass("请再次输入密码: "):
        print("两次输入的密码不一致")
        return 1

    hashed = generate_hash(password, rounds)
    verified = bcrypt.checkpw(password.encode("utf-8")[:72], hashed.encode("utf-8"))

    print()
    print("HashedPassword:")
    print(hashed)
    print()
    print(f"校验结果: {'通过' if verified else '失败'}")
    print("=" * 60)
    print("将上面的哈希填入 profile.json 的 HashedPassword 字段")
    print("=" * 60)
    return 0 if verified else 1


if __name__ == "__main__":
    sys.exit(main())
