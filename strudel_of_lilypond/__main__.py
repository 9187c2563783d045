from strudel_of_lilypond.cli import main

if __name__ == '__main__':
    main()
