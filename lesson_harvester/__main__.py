from lesson_harvester.cli import run

if __name__ == '__main__':
    run()
