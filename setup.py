from setuptools import setup, find_namespace_packages

setup(
    name="otp-exchange",
    version="1.0.0",
    description="One-time pad encryption and decryption services and clients",
    packages=find_namespace_packages(include=["src", "src.*"]),
    python_requires=">=3.8",
    install_requires=[
        "rich>=13.5.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "otp-keygen=src.otp.keygen:main",
            "otp-enc-d=src.otp.server:encrypt_service_main",
            "otp-dec-d=src.otp.server:decrypt_service_main",
            "otp-enc=src.otp.client:encrypt_main",
            "otp-dec=src.otp.client:decrypt_main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
