from i18nizer.app import main

if __name__ == "__main__":
    main()
