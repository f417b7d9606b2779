from setuptools import setup, find_packages

if __name__ =='__main__':
    setup(
        name='mpmfluid',
        version='1.0',
        description='2D MLS-MPM weakly-compressible fluid simulation',
        author='Krushang Gabani',
        author_email='krushang@buffalo.edu',
        keywords='Physics Simulation',
        packages=find_packages(include=['mpmfluid', 'mpmfluid.*']),
        python_requires='>=3.8',
        install_requires = [
            "imageio",
            "imageio-ffmpeg",
            "numpy",
            "taichi",
            "pyyaml",
            "yacs"
        ],
        extras_require = {
            "test": ["pytest"],
        },

    )
